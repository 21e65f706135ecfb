from app.db.base import Base
from app.models.user import User
from app.models.api_key import ApiKey
from app.models.project import Project
from app.models.collaboration import Collaboration
from app.models.marketplace import MarketplaceItem
from app.models.rating import Rating
from app.models.conversation import Conversation
from app.models.analytics_event import AnalyticsEvent
from app.models.deployment import Deployment
from app.models.prompt_template import PromptTemplate

__all__ = [
    "Base",
    "User",
    "ApiKey",
    "Project",
    "Collaboration",
    "MarketplaceItem",
    "Rating",
    "Conversation",
    "AnalyticsEvent",
    "Deployment",
    "PromptTemplate",
]
