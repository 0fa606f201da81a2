"""Tests for prompt template loading."""

from pathlib import Path

import pytest

from app.contact_extraction.exceptions import ContactExtractionError
from app.contact_extraction.prompt_loader import load_prompt


class TestLoadPrompt:
    def test_loads_text_prompt(self) -> None:
        template = load_prompt("text_prompt")
        assert "{document_text}" in template
        assert "{contact_fields}" in template
        assert "{filename}" in template

    def test_vision_prompt_has_no_document_text(self) -> None:
        template = load_prompt("vision_prompt")
        assert "{contact_fields}" in template
        assert "{document_text}" not in template

    def test_bundled_prompts_load(self) -> None:
        for name in ("system_prompt", "contact_fields", "text_prompt", "vision_prompt"):
            assert load_prompt(name).strip()

    def test_loads_custom_directory(self, tmp_path: Path) -> None:
        (tmp_path / "custom.txt").write_text("Hello {filename}", encoding="utf-8")
        assert load_prompt("custom", tmp_path) == "Hello {filename}"

    def test_missing_file_raises_error(self) -> None:
        with pytest.raises(ContactExtractionError, match="Failed to load prompt"):
            load_prompt("missing", Path("/nonexistent"))
