import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.analytics_event import AnalyticsEvent

logger = logging.getLogger(__name__)


def track_event(
    db: AsyncSession,
    user_id: uuid.UUID,
    event_type: str,
    project_id: Optional[uuid.UUID] = None,
    data: Optional[Dict[str, Any]] = None,
) -> AnalyticsEvent:
    """
    Stage an analytics event on the session.

    The caller commits together with the action being tracked.
    """
    event = AnalyticsEvent(
        user_id=user_id,
        project_id=project_id,
        event_type=event_type,
        event_data=data or {},
    )
    db.add(event)
    logger.debug(f"Tracked {event_type} for user {user_id}")
    return event
