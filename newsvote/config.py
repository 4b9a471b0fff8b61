from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    vote_threshold: float
    min_valid_votes: int
    saturation_multiplier: float
    ledger_api_url: str
    ledger_timeout_seconds: float
    ledger_api_token: str | None
    langfuse_public_key: str | None
    langfuse_secret_key: str | None
    langfuse_host: str | None


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default).strip()
    try:
        return cast(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.") from None


def load_settings() -> Settings:
    vote_threshold = _env_number("VOTE_THRESHOLD", "0.6", float)
    min_valid_votes = _env_number("VOTE_MIN_VALID_VOTES", "5", int)
    saturation_multiplier = _env_number("VOTE_SATURATION_MULTIPLIER", "5", float)

    ledger_api_url = os.getenv("LEDGER_API_URL", "http://localhost:3001/api").rstrip("/")
    ledger_timeout_seconds = _env_number("LEDGER_TIMEOUT_SECONDS", "10", float)
    ledger_api_token = os.getenv("LEDGER_API_TOKEN") or None

    return Settings(
        vote_threshold=vote_threshold,
        min_valid_votes=min_valid_votes,
        saturation_multiplier=saturation_multiplier,
        ledger_api_url=ledger_api_url,
        ledger_timeout_seconds=ledger_timeout_seconds,
        ledger_api_token=ledger_api_token,
        langfuse_public_key=os.getenv("LANGFUSE_PUBLIC_KEY"),
        langfuse_secret_key=os.getenv("LANGFUSE_SECRET_KEY"),
        langfuse_host=os.getenv("LANGFUSE_HOST"),
    )
