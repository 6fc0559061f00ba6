import enum
from werkzeug.security import generate_password_hash
from loyaltyhub import db
from loyaltyhub.utils.model_helpers import SerializerMixin, enum_column, new_id, utcnow


class RoleEnum(str, enum.Enum):
    admin    = "admin"
    manager  = "manager"
    staff    = "staff"
    customer = "customer"


# Roles whose registration creates a Business row
BUSINESS_ROLES = (RoleEnum.manager, RoleEnum.staff)


class User(SerializerMixin, db.Model):
    """A platform account: admin, business manager/staff, or customer."""
    __tablename__ = 'users'
    __serialize_exclude__ = ('password_hash',)

    id            = db.Column(db.String(36), primary_key=True, default=new_id)
    email         = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name    = db.Column(db.String(100))
    last_name     = db.Column(db.String(100))
    business_id   = db.Column(db.String(36),
                              db.ForeignKey('businesses.id', name='users_business_id_fkey',
                                            use_alter=True),
                              nullable=True)
    role          = enum_column(RoleEnum, nullable=False, default=RoleEnum.customer)
    created_at    = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at    = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    business = db.relationship('Business', foreign_keys=[business_id], lazy='select')

    # ── Password helpers ──────────────────────────────────────────
    def set_password(self, plain_password: str, method: str = 'scrypt') -> None:
        """Hash (salted, memory-hard) and store the password."""
        self.password_hash = generate_password_hash(plain_password, method=method)

    # ── Convenience ───────────────────────────────────────────────
    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f'{self.first_name} {self.last_name}'
        return self.email

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.admin

    def __repr__(self) -> str:
        return f"<User {self.email!r} role={self.role!r}>"
