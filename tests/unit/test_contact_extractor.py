import json
from unittest.mock import MagicMock

import pytest

from app.contact_extraction.exceptions import ExtractionResponseError, PageLimitExceededError
from app.contact_extraction.extractor import ContactExtractor


def _make_extractor(response: str = '{"contacts": []}', **kwargs: object) -> tuple[ContactExtractor, MagicMock]:
    client = MagicMock()
    client.create_chat_completion.return_value = response
    extractor = ContactExtractor(
        client=client,
        model="gpt-test",
        project_origin="OCD_CBT",
        **kwargs,  # type: ignore[arg-type]
    )
    return extractor, client


class TestParseContacts:
    def test_contacts_object(self) -> None:
        raw = json.dumps({"contacts": [{"name": "John Doe"}, {"company": "Acme"}]})
        assert ContactExtractor.parse_contacts(raw) == [{"name": "John Doe"}, {"company": "Acme"}]

    def test_bare_array(self) -> None:
        assert ContactExtractor.parse_contacts('[{"name": "A"}]') == [{"name": "A"}]

    def test_code_fences(self) -> None:
        raw = '```json\n{"contacts": [{"name": "A"}]}\n```'
        assert ContactExtractor.parse_contacts(raw) == [{"name": "A"}]

    def test_array_inside_prose(self) -> None:
        raw = 'Here are the owners: [{"name": "A"}] hope this helps'
        assert ContactExtractor.parse_contacts(raw) == [{"name": "A"}]

    def test_drops_non_objects(self) -> None:
        assert ContactExtractor.parse_contacts('[{"name": "A"}, "B", 3]') == [{"name": "A"}]

    @pytest.mark.parametrize("raw", ["no json here", '{"owners": []}', '{"contacts": "none"}'])
    def test_rejects(self, raw: str) -> None:
        with pytest.raises(ExtractionResponseError):
            ContactExtractor.parse_contacts(raw)


class TestExtractFromText:
    def test_builds_prompt(self) -> None:
        extractor, client = _make_extractor('{"contacts": [{"name": "Jane Roe"}]}')

        contacts = extractor.extract_from_text("Jane Roe, 12 Elm St", "case-101.pdf")

        assert contacts == [{"name": "Jane Roe"}]
        kwargs = client.create_chat_completion.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert "case-101.pdf" in kwargs["user_prompt"]
        assert "OCD_CBT" in kwargs["user_prompt"]
        assert "Jane Roe, 12 Elm St" in kwargs["user_prompt"]
        assert kwargs["system_prompt"]
        assert "images" not in kwargs

    def test_truncates_long_text(self) -> None:
        extractor, client = _make_extractor(max_text_chars=50)

        extractor.extract_from_text("x" * 50 + "y" * 50, "long.pdf")

        prompt = client.create_chat_completion.call_args.kwargs["user_prompt"]
        assert "x" * 50 in prompt
        assert "xy" not in prompt
        assert "y" * 10 not in prompt

    def test_text_with_braces(self) -> None:
        extractor, client = _make_extractor()

        extractor.extract_from_text("Interest {1/8} reserved", "braces.pdf")

        assert "Interest {1/8} reserved" in client.create_chat_completion.call_args.kwargs["user_prompt"]

    @pytest.mark.parametrize(("requested", "used"), [(0.7, 0.2), (-1.0, 0.0), (0.1, 0.1)])
    def test_clamps_temperature(self, requested: float, used: float) -> None:
        extractor, client = _make_extractor(temperature=requested)

        extractor.extract_from_text("text", "a.pdf")

        assert client.create_chat_completion.call_args.kwargs["temperature"] == used


class TestExtractFromDocument:
    def test_sends_page_images(self, multi_page_pdf_bytes: bytes) -> None:
        extractor, client = _make_extractor(
            '{"contacts": [{"name": "A"}]}', image_dpi=50, max_image_dimension=400
        )

        contacts = extractor.extract_from_document(multi_page_pdf_bytes, "scan.pdf")

        assert contacts == [{"name": "A"}]
        kwargs = client.create_chat_completion.call_args.kwargs
        assert len(kwargs["images"]) == 2
        assert "scan.pdf" in kwargs["user_prompt"]

    def test_page_limit(self, five_page_pdf_bytes: bytes) -> None:
        extractor, client = _make_extractor(max_pages=3)

        with pytest.raises(PageLimitExceededError) as exc_info:
            extractor.extract_from_document(five_page_pdf_bytes, "big.pdf")

        assert exc_info.value.max_pages == 3
        assert extractor.max_pages == 3
        client.create_chat_completion.assert_not_called()
