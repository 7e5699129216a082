"""Multi-ratio ad creative generation: planning, drafts, approval and edits."""

__version__ = "0.1.0"
