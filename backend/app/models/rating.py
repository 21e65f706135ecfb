import uuid
from datetime import datetime

from sqlalchemy import Text, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Rating(Base):
    """A user's 1-5 star rating of a marketplace item. One per user and item."""
    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("marketplace_item_id", "user_id", name="uq_ratings_item_user"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    marketplace_item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("marketplace_items.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    rating: Mapped[int] = mapped_column(Integer)
    review: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
