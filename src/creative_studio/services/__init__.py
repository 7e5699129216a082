"""Planning, assistant and snapshot services."""

from .assistant import AssistantSession
from .planner import ConceptPlanner
from .snapshot import dumps, export_session, import_session, load, loads, save

__all__ = [
    "AssistantSession",
    "ConceptPlanner",
    "dumps",
    "export_session",
    "import_session",
    "load",
    "loads",
    "save",
]
