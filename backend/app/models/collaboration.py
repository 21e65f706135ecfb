import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

COLLABORATOR_ROLES = ("viewer", "editor")


class Collaboration(Base):
    """Grants a user other than the owner access to a project."""
    __tablename__ = "collaborations"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_collaborations_project_user"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    # One of COLLABORATOR_ROLES; editors may change the project, viewers only read it
    role: Mapped[str] = mapped_column(String(20), default="viewer")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
