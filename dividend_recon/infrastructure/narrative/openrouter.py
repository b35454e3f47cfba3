"""Narrative annotation through an OpenAI-compatible chat completions API."""
from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import requests

from dividend_recon.config import SETTINGS, AnnotationSettings
from dividend_recon.domain.errors import AnnotationFailure
from dividend_recon.domain.models import Annotation, Break, RemediationClass, Severity, TokenUsage

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a senior financial operations analyst specialising in dividend \
reconciliation for institutional asset managers.

Rules:
- Never perform or correct calculations. Every number you receive is final.
- Focus on root cause and business context: securities lending, tax treaties, \
settlement timing, FX rounding, split bookings, data errors.
- Be specific and actionable.
- Typical confidence is between 0.70 and 0.95.

Severity rubric:
- CRITICAL: quantity difference above 50%, or amount above 1M or above 50%.
- HIGH: quantity difference 10-50%, or amount 100K-1M or 10-50%.
- MEDIUM: quantity difference 1-10%, or amount 10K-100K or 1-10%.
- LOW: below 1%, likely rounding.
CRITICAL breaks must use the "escalation" remediation.

Reply with a single JSON object with exactly these keys:
severity (CRITICAL|HIGH|MEDIUM|LOW), root_cause, explanation, recommendation,
confidence (number between 0 and 1),
remediation_class (auto_resolve|data_correction|create_entry|escalation)."""


def _fmt(value: object) -> str:
    if value is None:
        return "N/A"
    return str(value)


def build_prompt(break_: Break) -> str:
    pct = "N/A" if break_.difference_pct is None else f"{break_.difference_pct:.1f}%"
    return "\n".join(
        [
            "Analyse this dividend reconciliation break:",
            f"Event: {break_.event_key}",
            f"Instrument: {break_.instrument} (ISIN: {break_.isin})",
            f"Account: {break_.account or 'N/A'}",
            f"Break type: {break_.kind.value}",
            f"Booking value: {_fmt(break_.booking_value)}",
            f"Custody value: {_fmt(break_.custody_value)}",
            f"Difference: {_fmt(break_.difference)} ({pct})",
            f"Detail: {break_.message}",
        ]
    )


def _require_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise AnnotationFailure(f"annotation field {key!r} missing or empty")
    return value.strip()


def parse_annotation(payload: Mapping[str, Any], usage: TokenUsage) -> Annotation:
    try:
        severity = Severity(str(payload.get("severity", "")).upper())
        remediation = RemediationClass(str(payload.get("remediation_class", "")).lower())
    except ValueError as exc:
        raise AnnotationFailure(f"invalid annotation enum: {exc}") from exc
    try:
        confidence = float(payload.get("confidence"))
    except (TypeError, ValueError) as exc:
        raise AnnotationFailure("annotation confidence is not a number") from exc
    if not 0.0 <= confidence <= 1.0:
        raise AnnotationFailure(f"annotation confidence {confidence} outside [0, 1]")
    return Annotation(
        severity=severity,
        root_cause=_require_text(payload, "root_cause"),
        explanation=_require_text(payload, "explanation"),
        recommendation=_require_text(payload, "recommendation"),
        confidence=confidence,
        remediation_class=remediation,
        usage=usage,
    )


class OpenRouterAnnotator:
    """Annotates one break per request; any failure raises ``AnnotationFailure``."""

    def __init__(self, settings: AnnotationSettings | None = None, session: requests.Session | None = None) -> None:
        self._settings = settings or SETTINGS.annotation
        self._session = session or requests.Session()

    def cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        settings = self._settings
        return (
            prompt_tokens * settings.input_price_per_million
            + completion_tokens * settings.output_price_per_million
        ) / 1_000_000

    def annotate(self, break_: Break) -> Annotation:
        settings = self._settings
        if not settings.api_key:
            raise AnnotationFailure("no API key configured for narrative annotation")
        body = {
            "model": settings.model,
            "temperature": settings.temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(break_)},
            ],
        }
        headers = {"Authorization": f"Bearer {settings.api_key}"}
        try:
            resp = self._session.post(settings.api_url, json=body, headers=headers, timeout=settings.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise AnnotationFailure(f"narrative request failed: {exc}") from exc
        except ValueError as exc:
            raise AnnotationFailure("narrative response is not JSON") from exc

        try:
            content = data["choices"][0]["message"]["content"]
            payload = json.loads(content)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as exc:
            raise AnnotationFailure("narrative response has no JSON message content") from exc
        if not isinstance(payload, dict):
            raise AnnotationFailure("narrative content is not a JSON object")

        try:
            raw_usage = data.get("usage") or {}
            prompt_tokens = int(raw_usage.get("prompt_tokens") or 0)
            completion_tokens = int(raw_usage.get("completion_tokens") or 0)
        except (AttributeError, TypeError, ValueError) as exc:
            raise AnnotationFailure("narrative response has malformed token usage") from exc
        usage = TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost=self.cost(prompt_tokens, completion_tokens),
        )
        logger.debug("Annotated %s break for event %s (%d tokens)", break_.kind.value, break_.event_key, usage.total_tokens)
        return parse_annotation(payload, usage)
