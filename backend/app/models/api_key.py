"""Stored provider credentials (encrypted API keys)."""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.user import User

# Providers a user can store a key for
PROVIDERS = ("openai", "anthropic", "gemini", "cohere")


class ApiKey(Base):
    """
    A user-supplied third-party API key, encrypted at rest.

    Attributes:
        id: Primary key (UUID)
        owner_id: Foreign key to User
        provider: One of PROVIDERS
        display_name: Optional label chosen by the user
        ciphertext: Vault envelope ("iv:tag:ciphertext", hex encoded)
        is_active: Only active keys are used for generation
        created_at: Creation timestamp
        last_used_at: Last time the key was decrypted for a provider call

    Security Notes:
        - The plaintext key is never stored; only the vault envelope is
        - Decryption requires ENCRYPTION_KEY from the environment
        - Neither the plaintext nor the envelope is returned by the API
    """
    __tablename__ = "api_keys"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    provider: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    display_name: Mapped[str | None] = mapped_column(String(100))

    # Use app.services.encryption.CredentialVault to encrypt/decrypt
    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=datetime.utcnow
    )
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    owner: Mapped["User"] = relationship("User", back_populates="api_keys")

    def __repr__(self) -> str:
        # Never include the ciphertext
        return (
            f"<ApiKey(id={self.id}, owner_id={self.owner_id}, "
            f"provider={self.provider}, active={self.is_active})>"
        )
