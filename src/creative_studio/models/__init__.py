"""Data models."""

from .asset import Asset
from .brief import BriefFieldsUpdate, CampaignBrief, Settings
from .chat import AssistantReply, ChatMessage, ToolCall, ToolResult
from .concept import Concept
from .creative import Creative, CreativeStatus, Variant
from .history import VersionHistory
from .image import Failure, GeneratedImage, GenerationResult, Success
from .session import Session

__all__ = [
    "Asset",
    "AssistantReply",
    "BriefFieldsUpdate",
    "CampaignBrief",
    "ChatMessage",
    "Concept",
    "Creative",
    "CreativeStatus",
    "Failure",
    "GeneratedImage",
    "GenerationResult",
    "Session",
    "Settings",
    "Success",
    "ToolCall",
    "ToolResult",
    "Variant",
    "VersionHistory",
]
