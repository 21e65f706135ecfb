import uuid
from datetime import datetime
from typing import Any, Dict, TYPE_CHECKING

from sqlalchemy import String, Text, JSON, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.deployment import Deployment

PROJECT_TYPES = ("ai", "website", "bot", "game", "web3")


class Project(Base):
    """
    SQLAlchemy model representing a user's generated-code project.
    Generated code lives in ``content`` under the keys html, css, js and files.
    """
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    name: Mapped[str] = mapped_column(String(200))

    # One of PROJECT_TYPES
    type: Mapped[str] = mapped_column(String(20))

    description: Mapped[str | None] = mapped_column(Text)

    # Project-specific data, including the generated code
    content: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)

    # Preview image URL or thumbnail
    preview: Mapped[str | None] = mapped_column(String(512))

    is_public: Mapped[bool] = mapped_column(Boolean, default=False)

    # URL of the most recent successful deployment
    deploy_url: Mapped[str | None] = mapped_column(String(512))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    owner: Mapped["User"] = relationship("User", back_populates="projects")

    deployments: Mapped[list["Deployment"]] = relationship(
        "Deployment", back_populates="project", cascade="all, delete-orphan"
    )
