from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String
from assetvault.core.base import Base, TimestampedMixin

class User(Base, TimestampedMixin):
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(50), default="user", server_default="user")  # admin | user
