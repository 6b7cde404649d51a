import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, ForeignKey
from assetvault.core.base import Base, TimestampedMixin

class ActivityLog(Base, TimestampedMixin):
    __tablename__ = "activity_logs"

    event_type: Mapped[str] = mapped_column(String(100))  # asset_uploaded | asset_deleted | asset_deleted_by_admin | user_registered
    # the log outlives the user it mentions
    user_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    asset_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)  # no FK: assets get deleted, logs stay
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
