import uuid
from datetime import datetime
from typing import Dict, Optional, TYPE_CHECKING
from sqlalchemy import String, Text, JSON, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base

if TYPE_CHECKING:
    from app.models.project import Project

# Static hosts we can prepare a bundle for
HOSTING_PROVIDERS = ("vercel", "netlify", "render", "railway", "fleek")

# 'deployed' and 'failed' are terminal
DEPLOYMENT_STATUSES = ("pending", "building", "deployed", "failed")


class Deployment(Base):
    """
    SQLAlchemy model representing one deployment of a project.
    Created 'pending'; a background task moves it through 'building' to
    'deployed' or 'failed'.
    """
    __tablename__ = "deployments"

    # Primary Key: UUID, automatically generated if not provided
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    # Target host, one of HOSTING_PROVIDERS
    provider: Mapped[str] = mapped_column(String(20), default="netlify")

    # Domain written into robots.txt and sitemap.xml
    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending")

    # Where the built bundle can be fetched once deployed
    url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    build_log: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Snapshot of the file set produced by the build (path -> content)
    files: Mapped[Optional[Dict[str, str]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Timestamp when the record was last updated, updates automatically on change
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    project: Mapped["Project"] = relationship("Project", back_populates="deployments")
