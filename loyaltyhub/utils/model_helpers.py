"""
loyaltyhub/utils/model_helpers.py
---------------------------------
Column helpers shared by every model.

Primary keys are 36-char strings holding a UUID4 by default. Older rows
created by the Node services carry nanoid ids, so the column is a string,
not a native UUID.
"""
import enum
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal

from sqlalchemy import JSON, inspect as sa_inspect
from sqlalchemy.dialects.postgresql import JSONB

from loyaltyhub import db


# JSONB on PostgreSQL, plain JSON (text) everywhere else
JSONType = JSON().with_variant(JSONB(), 'postgresql')


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp. All DateTime columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def enum_column(enum_cls, **kwargs):
    """VARCHAR + CHECK constraint holding the enum *values*."""
    return db.Column(
        db.Enum(enum_cls, native_enum=False, length=20,
                values_callable=lambda e: [m.value for m in e],
                validate_strings=True),
        **kwargs
    )


class SerializerMixin:
    """
    Row → JSON-ready dict keyed by column name.
    `__serialize_exclude__` lists attributes never sent to clients (password hashes).
    """

    __serialize_exclude__ = ()

    def to_dict(self) -> dict:
        out = {}
        for attr in sa_inspect(self).mapper.column_attrs:
            if attr.key in self.__serialize_exclude__:
                continue
            out[attr.columns[0].name] = _jsonable(getattr(self, attr.key))
        return out


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value
