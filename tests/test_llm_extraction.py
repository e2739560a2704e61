"""Unit tests for the LLM client, prompt rendering and LLM extractor.

No network access: the HTTP session is a Mock and the extractor runs
against FakeLLMClient.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from property_import.domain.models import RawPost
from property_import.extraction import (
    ExtractionError,
    ExtractionMethod,
    LLMClient,
    LLMExtractor,
    LLMHTTPError,
    LLMResponseError,
    LLMTimeoutError,
    PromptRenderer,
    RateLimiter,
    extract_json_object,
)
from property_import.utils.cache import TTLCache
from tests.helpers import FakeLLMClient

ENDPOINT = "https://llm.internal.test/functions/v1/reasoning"


def _response(status_code=200, body=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text or json.dumps(body)
    if body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    mock_session = Mock(spec=requests.Session)
    mock_session.headers = {}
    return mock_session


class TestLLMClient:
    """Tests for LLMClient HTTP handling."""

    def test_returns_response_field(self, session):
        session.post.return_value = _response(body={"reasoning": '{"price": 1}'})
        client = LLMClient(ENDPOINT, api_key="secret", timeout=5.0, session=session)

        assert client.complete("prompt text") == '{"price": 1}'

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == ENDPOINT
        assert kwargs["timeout"] == 5.0
        assert kwargs["json"]["query"] == "prompt text"
        assert kwargs["json"]["context"]["task"] == "property_extraction"
        assert session.headers["Authorization"] == "Bearer secret"

    def test_no_auth_header_without_key(self, session):
        LLMClient(ENDPOINT, session=session)
        assert "Authorization" not in session.headers

    def test_timeout(self, session):
        session.post.side_effect = requests.exceptions.Timeout("slow")
        client = LLMClient(ENDPOINT, session=session)

        with pytest.raises(LLMTimeoutError) as exc_info:
            client.complete("prompt")
        assert exc_info.value.url == ENDPOINT

    def test_connection_error(self, session):
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        client = LLMClient(ENDPOINT, session=session)

        with pytest.raises(LLMHTTPError) as exc_info:
            client.complete("prompt")
        assert exc_info.value.status_code == 0

    @pytest.mark.parametrize("status", [401, 429, 503])
    def test_http_error_status(self, session, status):
        session.post.return_value = _response(status_code=status, body={"error": "nope"})
        client = LLMClient(ENDPOINT, session=session)

        with pytest.raises(LLMHTTPError) as exc_info:
            client.complete("prompt")
        assert exc_info.value.status_code == status

    def test_invalid_json_body(self, session):
        session.post.return_value = _response(body=None, text="<html>oops</html>")
        client = LLMClient(ENDPOINT, session=session)

        with pytest.raises(LLMResponseError):
            client.complete("prompt")

    def test_missing_response_field(self, session):
        session.post.return_value = _response(body={"answer": "x"})
        client = LLMClient(ENDPOINT, session=session)

        with pytest.raises(LLMResponseError, match="reasoning"):
            client.complete("prompt")

    def test_custom_response_field(self, session):
        session.post.return_value = _response(body={"output": "hello"})
        client = LLMClient(ENDPOINT, response_field="output", session=session)
        assert client.complete("prompt") == "hello"

    def test_null_output_is_empty_string(self, session):
        session.post.return_value = _response(body={"reasoning": None})
        assert LLMClient(ENDPOINT, session=session).complete("prompt") == ""

    def test_rejects_bad_arguments(self, session):
        with pytest.raises(ValueError):
            LLMClient("", session=session)
        with pytest.raises(ValueError):
            LLMClient(ENDPOINT, timeout=0, session=session)

    def test_errors_share_base_class(self):
        assert issubclass(LLMHTTPError, ExtractionError)
        assert issubclass(LLMTimeoutError, ExtractionError)
        assert issubclass(LLMResponseError, ExtractionError)


class TestExtractJsonObject:
    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"price": 7500000, "location": "Kondapur"}\n```\nThanks'
        assert extract_json_object(text) == {"price": 7500000, "location": "Kondapur"}

    def test_raw_object_with_surrounding_text(self):
        assert extract_json_object('Result: {"a": {"b": 1}} done') == {"a": {"b": 1}}

    @pytest.mark.parametrize("text", ["", "no json here", "{not valid json}", "[1, 2]"])
    def test_malformed(self, text):
        with pytest.raises(LLMResponseError):
            extract_json_object(text)


class TestPromptRenderer:
    def test_renders_post_text_and_city(self):
        prompt = PromptRenderer(default_city="Pune").render("3BHK in Baner, 1.2 Cr")

        assert "3BHK in Baner, 1.2 Cr" in prompt
        assert '"Gachi" -> "Gachibowli, Pune"' in prompt
        assert "residential, commercial, agricultural, undeveloped" in prompt
        assert "sale, rent, development_partnership" in prompt

    def test_missing_template_raises_extraction_error(self):
        renderer = PromptRenderer(template_name="missing.j2")
        with pytest.raises(ExtractionError):
            renderer.render("text")


class TestRateLimiter:
    def test_first_call_does_not_wait(self):
        sleep = Mock()
        limiter = RateLimiter(12.0, clock=lambda: 100.0, sleep=sleep)
        assert limiter.wait() == 0.0
        sleep.assert_not_called()

    def test_second_call_waits_for_remaining_interval(self):
        times = iter([100.0, 103.0, 112.0])
        sleep = Mock()
        limiter = RateLimiter(12.0, clock=lambda: next(times), sleep=sleep)

        limiter.wait()
        waited = limiter.wait()

        assert waited == pytest.approx(9.0)
        sleep.assert_called_once_with(pytest.approx(9.0))

    def test_no_wait_after_interval_elapsed(self):
        times = iter([0.0, 20.0, 20.0])
        sleep = Mock()
        limiter = RateLimiter(12.0, clock=lambda: next(times), sleep=sleep)

        limiter.wait()
        assert limiter.wait() == 0.0
        sleep.assert_not_called()

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RateLimiter(-1)


def _extractor(responses):
    client = FakeLLMClient(responses)
    limiter = RateLimiter(0.0, sleep=Mock())
    return (
        LLMExtractor(client, rate_limiter=limiter, cache=TTLCache(3600)),
        client,
    )


@pytest.fixture
def post():
    return RawPost(
        text="Spacious 2BHK flat in Kondapur, DM for price",
        post_url="https://www.instagram.com/p/llm001/",
        account_handle="kondapurhomes",
        images=["https://cdn.example.com/a.jpg"],
    )


class TestLLMExtractor:
    """Tests for LLMExtractor validation, failure handling and caching."""

    def test_successful_extraction(self, post):
        extractor, client = _extractor([
            '```json\n{"title": "2BHK Flat", "price": 6500000, "location": "Kondapur, Hyderabad",'
            ' "bedrooms": 2, "property_type": "residential", "listing_type": "sale",'
            ' "contact_phone": 9876543210}\n```'
        ])

        result = extractor.extract(post)

        assert result.succeeded
        assert result.method == ExtractionMethod.LLM
        assert result.warnings == []
        candidate = result.extracted
        assert candidate.price == 6_500_000
        assert candidate.bedrooms == 2
        assert candidate.contact_phone == "9876543210"
        assert candidate.source_url == post.post_url
        assert candidate.source_handle == "kondapurhomes"
        assert candidate.images == ["https://cdn.example.com/a.jpg"]
        assert candidate.description == post.text
        assert post.text in client.prompts[0]

    def test_missing_price_and_location_are_errors(self, post):
        extractor, _ = _extractor(['{"title": "Flat", "price": 0}'])

        result = extractor.extract(post)

        assert not result.succeeded
        assert "Price is required and must be positive" in result.errors
        assert "Location is required" in result.errors

    def test_invalid_types_default_with_warnings(self, post):
        extractor, _ = _extractor(
            ['{"price": 5000000, "location": "Kondapur", "property_type": "bungalow",'
             ' "listing_type": "swap"}']
        )

        result = extractor.extract(post)

        assert result.succeeded
        assert result.extracted.property_type == "residential"
        assert result.extracted.listing_type == "sale"
        assert "Title is missing or empty" in result.warnings
        assert any("property_type" in w for w in result.warnings)
        assert any("listing_type" in w for w in result.warnings)

    def test_wrong_field_types_are_errors(self, post):
        extractor, _ = _extractor(['{"price": 5000000, "location": "Kondapur", "bedrooms": "many"}'])

        result = extractor.extract(post)

        assert result.extracted is None
        assert any("wrong type" in e for e in result.errors)

    @pytest.mark.parametrize(
        "failure",
        [
            LLMTimeoutError("timed out", url=ENDPOINT),
            LLMHTTPError("boom", status_code=500, url=ENDPOINT),
        ],
    )
    def test_client_failures_become_errors(self, post, failure):
        extractor, _ = _extractor([failure])

        result = extractor.extract(post)

        assert result.extracted is None
        assert len(result.errors) == 1
        assert result.errors[0].startswith("LLM extraction failed:")

    def test_malformed_output_becomes_error(self, post):
        extractor, _ = _extractor(["I could not find any property here."])

        result = extractor.extract(post)

        assert not result.succeeded
        assert result.raw_response == "I could not find any property here."

    def test_successful_result_is_cached(self, post):
        extractor, client = _extractor(['{"price": 6500000, "location": "Kondapur"}'])

        first = extractor.extract(post)
        # Same caption with different spacing and case
        second = extractor.extract(
            RawPost(text="  spacious 2bhk FLAT in Kondapur,   DM for price ", post_url="https://x/p/2/")
        )

        assert len(client.prompts) == 1
        assert first.method == ExtractionMethod.LLM
        assert second.method == ExtractionMethod.CACHE
        assert second.extracted.price == 6_500_000
        assert second.extracted.source_url == "https://x/p/2/"

    def test_failed_result_is_not_cached(self, post):
        extractor, client = _extractor(
            ['{"title": "no price"}', '{"price": 6500000, "location": "Kondapur"}']
        )

        assert not extractor.extract(post).succeeded
        assert extractor.extract(post).succeeded
        assert len(client.prompts) == 2

    def test_rate_limiter_is_consulted_per_call(self, post):
        client = FakeLLMClient(['{"price": 1, "location": "A"}', '{"price": 2, "location": "B"}'])
        limiter = Mock()
        extractor = LLMExtractor(client, rate_limiter=limiter, cache=TTLCache(3600))

        extractor.extract(post)
        extractor.extract(RawPost(text="another caption"))

        assert limiter.wait.call_count == 2
