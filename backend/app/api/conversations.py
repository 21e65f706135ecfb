import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.conversation import Conversation
from app.models.project import Project
from app.models.user import User
from app.schemas.conversation import (
    ConversationCreate,
    ConversationMessageRequest,
    ConversationResponse,
    ConversationUpdate,
)
from app.services.encryption import CredentialVault, get_encryption_service
from app.services.generation import GenerationGateway, generate_for_user, get_generation_gateway

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_owned_conversation(conversation_id: uuid.UUID, user: User, db: AsyncSession) -> Conversation:
    conversation = await db.get(Conversation, conversation_id)
    if not conversation or conversation.owner_id != user.id:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


def _dump_messages(messages) -> list:
    return [m.model_dump(mode="json") for m in messages]


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    project_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stmt = select(Conversation).where(Conversation.owner_id == current_user.id)
    if project_id is not None:
        stmt = stmt.where(Conversation.project_id == project_id)
    result = await db.execute(stmt.order_by(Conversation.updated_at.desc()))
    return result.scalars().all()


@router.post("", response_model=ConversationResponse)
async def create_conversation(
    conversation_in: ConversationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if conversation_in.project_id:
        project = await db.get(Project, conversation_in.project_id)
        if not project or project.owner_id != current_user.id:
            raise HTTPException(status_code=404, detail="Project not found")

    conversation = Conversation(
        owner_id=current_user.id,
        project_id=conversation_in.project_id,
        messages=_dump_messages(conversation_in.messages),
        ai_provider=conversation_in.ai_provider,
    )
    db.add(conversation)
    await db.commit()
    await db.refresh(conversation)
    return conversation


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_owned_conversation(conversation_id, current_user, db)


@router.patch("/{conversation_id}", response_model=ConversationResponse)
async def update_conversation(
    conversation_id: uuid.UUID,
    conversation_in: ConversationUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    conversation = await _get_owned_conversation(conversation_id, current_user, db)
    if conversation_in.messages is not None:
        conversation.messages = _dump_messages(conversation_in.messages)
    if conversation_in.ai_provider is not None:
        conversation.ai_provider = conversation_in.ai_provider
    await db.commit()
    await db.refresh(conversation)
    return conversation


@router.post("/{conversation_id}/messages", response_model=ConversationResponse)
async def send_message(
    conversation_id: uuid.UUID,
    message_in: ConversationMessageRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: GenerationGateway = Depends(get_generation_gateway),
    encryption_service: CredentialVault = Depends(get_encryption_service),
):
    """
    Append a user message, generate the assistant reply and append it too.

    The conversation's provider is tried first; unless ``strict_provider`` is
    set, the other configured providers and the template fallback follow.
    """
    conversation = await _get_owned_conversation(conversation_id, current_user, db)

    now = datetime.utcnow().isoformat()
    history = list(conversation.messages or [])
    history.append({"role": "user", "content": message_in.content, "timestamp": now})

    if message_in.strict_provider:
        result = await generate_for_user(
            gateway, current_user.id, db,
            [{"role": m["role"], "content": m["content"]} for m in history],
            provider=conversation.ai_provider,
            encryption_service=encryption_service,
        )
    else:
        preferred = GenerationGateway(
            sorted(gateway.strategies, key=lambda s: s.name != conversation.ai_provider)
        )
        result = await generate_for_user(
            preferred, current_user.id, db,
            [{"role": m["role"], "content": m["content"]} for m in history],
            encryption_service=encryption_service,
        )

    history.append({
        "role": "assistant",
        "content": result.content,
        "timestamp": datetime.utcnow().isoformat(),
    })
    # Reassign so the JSON column is flagged dirty
    conversation.messages = history
    await db.commit()
    await db.refresh(conversation)

    logger.info(f"Conversation {conversation.id}: reply from {result.provider}")
    return conversation
