from pathlib import Path

from app.contact_extraction.exceptions import ContactExtractionError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt(name: str, prompt_dir: Path | None = None) -> str:
    """Load a bundled prompt template by file stem.

    Args:
        name: Template name without extension, e.g. "text_prompt".
        prompt_dir: Directory to read from. Defaults to the bundled prompts.

    Raises:
        ContactExtractionError: if the file cannot be read.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / f"{name}.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContactExtractionError(f"Failed to load prompt '{name}': {exc}") from exc
