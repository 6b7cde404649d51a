import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, BigInteger, JSON, ForeignKey
from assetvault.core.base import Base, TimestampedMixin

class Asset(Base, TimestampedMixin):
    # <time_ns>-<sanitized client name>; unique so filename-scoped deletes touch one row
    filename: Mapped[str] = mapped_column(String(255), unique=True)
    original_filename: Mapped[str] = mapped_column(String(255))
    # durable locator (URL) of the backing object
    storage_url: Mapped[str] = mapped_column(Text)
    # assets outlive a removed owner; admins can still list and delete them
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    size: Mapped[int] = mapped_column(BigInteger)
    mimetype: Mapped[str] = mapped_column(String(100))
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    permissions: Mapped[dict] = mapped_column(JSON, default=lambda: {"public": False})
