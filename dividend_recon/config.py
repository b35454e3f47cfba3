"""Central configuration for the dividend reconciliation package."""
from __future__ import annotations

import os
from dataclasses import dataclass, field

from dividend_recon.domain.tolerances import Tolerances

DEFAULT_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "openai/gpt-4o-mini"

# USD per million tokens for the default model.
INPUT_PRICE_PER_MILLION = 0.15
OUTPUT_PRICE_PER_MILLION = 0.60


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw)
    except ValueError:
        return default


def _env_budget(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


@dataclass(slots=True, frozen=True)
class AnnotationSettings:
    api_key: str
    api_url: str
    model: str
    max_concurrency: int
    budget_usd: float | None
    timeout: float
    temperature: float = 0.3
    input_price_per_million: float = INPUT_PRICE_PER_MILLION
    output_price_per_million: float = OUTPUT_PRICE_PER_MILLION


@dataclass(slots=True, frozen=True)
class Settings:
    tolerances: Tolerances
    csv_delimiter: str
    annotation: AnnotationSettings = field(repr=False)


def load_settings() -> Settings:
    return Settings(
        tolerances=Tolerances(),
        csv_delimiter=os.getenv("DIVIDEND_RECON_DELIMITER", ";") or ";",
        annotation=AnnotationSettings(
            api_key=os.getenv("OPEN_ROUTER_API_KEY", ""),
            api_url=os.getenv("DIVIDEND_RECON_API_URL", DEFAULT_API_URL),
            model=os.getenv("DIVIDEND_RECON_MODEL", DEFAULT_MODEL),
            max_concurrency=_env_int("DIVIDEND_RECON_MAX_CONCURRENCY", 4),
            budget_usd=_env_budget("DIVIDEND_RECON_BUDGET_USD"),
            timeout=_env_float("DIVIDEND_RECON_TIMEOUT", 45.0),
        ),
    )


SETTINGS = load_settings()
