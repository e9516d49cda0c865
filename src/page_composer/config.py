from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

from .history import DEFAULT_HISTORY_LIMIT


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class EngineSettings:
    environment: str = "dev"
    project_id: str | None = None
    history_limit: int = DEFAULT_HISTORY_LIMIT
    session_ttl_seconds: int = 30 * 60
    alternate_count: int = 1
    fold_depth: int = 2
    confidence_threshold: float = 0.6
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.session_ttl_seconds)

    @property
    def augmentation_enabled(self) -> bool:
        return bool(self.gemini_api_key)


def load_settings(env: Mapping[str, str] | None = None) -> EngineSettings:
    env = os.environ if env is None else env
    return EngineSettings(
        environment=env.get("ENVIRONMENT", "dev"),
        project_id=env.get("PROJECT_ID") or None,
        history_limit=_int(env, "PAGE_COMPOSER_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
        session_ttl_seconds=_int(env, "PAGE_COMPOSER_SESSION_TTL", 30 * 60),
        alternate_count=_int(env, "PAGE_COMPOSER_ALTERNATES", 1),
        fold_depth=_int(env, "PAGE_COMPOSER_FOLD_DEPTH", 2),
        confidence_threshold=_float(env, "PAGE_COMPOSER_CONFIDENCE_THRESHOLD", 0.6),
        gemini_api_key=env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY") or None,
        gemini_model=env.get("GEMINI_MODEL", "gemini-2.0-flash"),
    )


__all__ = ["EngineSettings", "load_settings"]
