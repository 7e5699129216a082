"""Load prompts from package files."""

from pathlib import Path


PROMPTS_DIR = Path(__file__).parent / "prompts"


def load_prompt(name: str) -> str:
    """
    Load a prompt template.

    Args:
        name: One of 'planner', 'summarize', 'assistant'

    Returns:
        The prompt text.

    Raises:
        FileNotFoundError: If prompt file doesn't exist.
    """
    path = PROMPTS_DIR / f"{name}.txt"
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")
    return path.read_text(encoding="utf-8").strip()


def render_prompt(name: str, **values: str) -> str:
    """Load a template and fill its {placeholders}."""
    return load_prompt(name).format(**values)
