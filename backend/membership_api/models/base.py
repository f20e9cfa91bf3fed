"""
Base model with common fields.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from membership_api.db.base import Base


def generate_uuid() -> str:
    """Generate the external (client-facing) identifier."""
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin for created/updated timestamps."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )


class BaseModel(Base, TimestampMixin):
    """
    Abstract base model with the two identity schemes and timestamps.

    `id` is a database-assigned sequence used internally and for ordering;
    `uuid` is random and is what external references should use.
    """
    __abstract__ = True

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )
    uuid: Mapped[str] = mapped_column(
        String(36),
        unique=True,
        nullable=False,
        default=generate_uuid
    )
