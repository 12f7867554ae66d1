"""
User model - Dashboard account owning zero or more wallets.
"""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from oeconomia.database import Base, generate_uuid


class User(Base):
    """Dashboard user. ``password`` always holds a PBKDF2 hash."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    username: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        comment="Login name"
    )
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Password hash (pbkdf2_sha256$iterations$salt$key)"
    )

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, username={self.username!r})"
