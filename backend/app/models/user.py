"""User model for authentication."""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.api_key import ApiKey
    from app.models.project import Project


class User(Base):
    """
    User model representing authenticated users.

    Sign-in happens in the frontend auth layer. The backend receives JWT tokens
    and provisions a minimal user row from the token claims on first use.

    Attributes:
        id: Primary key (UUID)
        email: User's email (unique, required)
        name: User's display name
        avatar_url: Profile picture URL
        subscription_tier: Plan name, "free_forever" unless upgraded
        created_at: Account creation timestamp
        updated_at: Last update timestamp

    Relationships:
        projects: All projects owned by this user
        api_keys: Encrypted provider credentials stored by this user
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255))
    avatar_url: Mapped[str | None] = mapped_column(String(512))
    subscription_tier: Mapped[str] = mapped_column(String(50), default="free_forever")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    # Relationships
    projects: Mapped[list["Project"]] = relationship(
        "Project",
        back_populates="owner",
        cascade="all, delete-orphan"
    )

    api_keys: Mapped[list["ApiKey"]] = relationship(
        "ApiKey",
        back_populates="owner",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, name={self.name})>"
