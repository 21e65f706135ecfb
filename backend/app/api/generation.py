import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.db.session import get_db
from app.models.project import Project
from app.models.user import User
from app.prompts.generation_prompts import ASSISTANT_PRESETS, code_system_prompt
from app.schemas.generation import (
    ChatRequest,
    ChatResponse,
    CodeGenerationRequest,
    CodeGenerationResponse,
)
from app.services.analytics import track_event
from app.services.encryption import CredentialVault, get_encryption_service
from app.services.generation import (
    GenerationGateway,
    GenerationOptions,
    build_messages,
    generate_for_user,
    get_generation_gateway,
)

router = APIRouter()
# Older clients post code requests to /generate/code
compat_router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: GenerationGateway = Depends(get_generation_gateway),
    encryption_service: CredentialVault = Depends(get_encryption_service),
):
    """
    Chat with an AI provider.

    Without ``provider`` the configured providers are tried in priority order
    and a template answer is returned if none responds. With ``provider`` only
    that provider is used, and a missing key is reported to the caller.
    """
    messages = [{"role": m.role, "content": m.content} for m in request.messages]
    if request.preset and not any(m["role"] == "system" for m in messages):
        messages.insert(0, {"role": "system", "content": ASSISTANT_PRESETS[request.preset]["system_prompt"]})

    options = GenerationOptions(
        temperature=request.temperature,
        max_output_tokens=request.max_output_tokens,
        model=request.model,
    )
    result = await generate_for_user(
        gateway, current_user.id, db, messages, options,
        provider=request.provider, encryption_service=encryption_service,
    )

    track_event(db, current_user.id, "generation", data={
        "kind": "chat", "provider": result.provider, "fallback": result.fallback,
    })
    await db.commit()

    return ChatResponse(
        response=result.content,
        provider=result.provider,
        model=result.model,
        fallback=result.fallback,
    )


@router.post("/generate-code", response_model=CodeGenerationResponse)
@compat_router.post("/code", response_model=CodeGenerationResponse, include_in_schema=False)
async def generate_code(
    request: CodeGenerationRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: GenerationGateway = Depends(get_generation_gateway),
    encryption_service: CredentialVault = Depends(get_encryption_service),
):
    if request.project_id is not None:
        project = await db.get(Project, request.project_id)
        if not project or project.owner_id != current_user.id:
            raise HTTPException(status_code=404, detail="Project not found")

    messages = build_messages(request.prompt, code_system_prompt(request.language))
    options = GenerationOptions(
        temperature=request.temperature,
        max_output_tokens=request.max_output_tokens,
        model=request.model,
    )
    result = await generate_for_user(
        gateway, current_user.id, db, messages, options,
        provider=request.provider, encryption_service=encryption_service,
    )

    logger.info(
        f"Code generation for user {current_user.id}: provider={result.provider} fallback={result.fallback}"
    )
    track_event(db, current_user.id, "generation", request.project_id, {
        "kind": "code", "language": request.language,
        "provider": result.provider, "fallback": result.fallback,
    })
    await db.commit()

    return CodeGenerationResponse(
        code=result.content,
        provider=result.provider,
        model=result.model,
        fallback=result.fallback,
    )
