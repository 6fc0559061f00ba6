from loyaltyhub import db
from loyaltyhub.utils.model_helpers import SerializerMixin, utcnow


class Comment(SerializerMixin, db.Model):
    """Free-text feedback left from the marketing site. Never edited, so no updated_at."""
    __tablename__ = 'comments'

    id         = db.Column(db.Integer, primary_key=True)
    comment    = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f'<Comment {self.id}>'
