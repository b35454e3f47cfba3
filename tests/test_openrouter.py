import json

import pytest
import requests
from conftest import make_booking, make_custody

from dividend_recon.application.annotation import annotate_breaks
from dividend_recon.config import AnnotationSettings
from dividend_recon.domain.errors import AnnotationFailure
from dividend_recon.domain.models import RemediationClass, Severity
from dividend_recon.domain.services import reconcile
from dividend_recon.infrastructure.narrative.openrouter import OpenRouterAnnotator, build_prompt

SETTINGS = AnnotationSettings(
    api_key="test-key",
    api_url="https://example.invalid/v1/chat/completions",
    model="test-model",
    max_concurrency=2,
    budget_usd=None,
    timeout=5.0,
)

GOOD_CONTENT = {
    "severity": "high",
    "root_cause": "Securities lending",
    "explanation": "2,000 shares were on loan over the record date.",
    "recommendation": "Confirm the loan and book the manufactured dividend.",
    "confidence": 0.88,
    "remediation_class": "escalation",
}


class FakeResponse:
    def __init__(self, payload=None, status=200, text=None):
        self._payload = payload
        self.status_code = status
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._text is not None:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


def completion(content, usage=None):
    return {
        "choices": [{"message": {"content": content if isinstance(content, str) else json.dumps(content)}}],
        "usage": usage or {"prompt_tokens": 1000, "completion_tokens": 200},
    }


def quantity_break():
    (item,) = reconcile([make_booking(nominal="25000")], [make_custody(holding="23000")])
    return item


def test_annotate_parses_response_and_cost():
    session = FakeSession(FakeResponse(completion(GOOD_CONTENT)))
    annotator = OpenRouterAnnotator(SETTINGS, session=session)

    annotation = annotator.annotate(quantity_break())

    assert annotation.severity is Severity.HIGH
    assert annotation.remediation_class is RemediationClass.ESCALATION
    assert annotation.confidence == pytest.approx(0.88)
    assert annotation.usage.total_tokens == 1200
    assert annotation.usage.cost == pytest.approx((1000 * 0.15 + 200 * 0.60) / 1_000_000)

    sent = session.requests[0]
    assert sent["url"] == SETTINGS.api_url
    assert sent["headers"]["Authorization"] == "Bearer test-key"
    assert sent["json"]["model"] == "test-model"
    assert sent["json"]["response_format"] == {"type": "json_object"}
    assert "QUANTITY" in sent["json"]["messages"][1]["content"]


def test_prompt_carries_only_precomputed_values():
    prompt = build_prompt(quantity_break())

    assert "Break type: QUANTITY" in prompt
    assert "Difference: 2000 (-8.0%)" in prompt
    assert "Booking value: 25000" in prompt


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("refused")),
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(FakeResponse(status=502)),
        FakeSession(FakeResponse(text="<html>")),
        FakeSession(FakeResponse({"choices": []})),
        FakeSession(FakeResponse(completion("not json"))),
        FakeSession(FakeResponse(completion(["a", "list"]))),
        FakeSession(FakeResponse(completion({**GOOD_CONTENT, "severity": "URGENT"}))),
        FakeSession(FakeResponse(completion({**GOOD_CONTENT, "remediation_class": "ignore"}))),
        FakeSession(FakeResponse(completion({**GOOD_CONTENT, "confidence": 1.5}))),
        FakeSession(FakeResponse(completion({**GOOD_CONTENT, "confidence": "high"}))),
        FakeSession(FakeResponse(completion({**GOOD_CONTENT, "explanation": " "}))),
        FakeSession(FakeResponse(completion(GOOD_CONTENT, usage={"prompt_tokens": "n/a"}))),
        FakeSession(FakeResponse(completion(GOOD_CONTENT, usage=["not", "a", "dict"]))),
    ],
)
def test_failures_raise_annotation_failure(session):
    annotator = OpenRouterAnnotator(SETTINGS, session=session)

    with pytest.raises(AnnotationFailure):
        annotator.annotate(quantity_break())


def test_missing_api_key_fails_without_request():
    session = FakeSession(FakeResponse(completion(GOOD_CONTENT)))
    settings = AnnotationSettings(
        api_key="",
        api_url=SETTINGS.api_url,
        model="m",
        max_concurrency=1,
        budget_usd=None,
        timeout=1.0,
    )

    with pytest.raises(AnnotationFailure):
        OpenRouterAnnotator(settings, session=session).annotate(quantity_break())
    assert session.requests == []


def test_malformed_usage_does_not_abort_annotation_run():
    session = FakeSession(FakeResponse(completion(GOOD_CONTENT, usage={"prompt_tokens": "n/a", "completion_tokens": 5})))
    breaks = [quantity_break()]

    run = annotate_breaks(breaks, OpenRouterAnnotator(SETTINGS, session=session))

    assert run.failed == 1
    assert run.annotated == 0
    assert list(run.breaks) == breaks
