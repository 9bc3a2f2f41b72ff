"""Runtime configuration for Storyloom.

Every knob is read from the process environment.
``StoryloomSettings.from_env`` reads it on each call so tests and
long-lived servers can build fresh settings.

Environment Variables:
- STORYLOOM_PROVIDER: ``openai`` (default) or ``ollama``
- STORYLOOM_MODEL: model id sent with every completion call
- OPENAI_API_KEY: credential for the openai provider
- OLLAMA_HOST / OLLAMA_API_KEY: ollama daemon address and optional bearer key
- STORYLOOM_QUESTION_TEMPERATURE / _FOLLOWUP_ / _ESSAY_: per-stage sampling
- STORYLOOM_TIMEOUT: seconds allowed for one completion call
- STORYLOOM_EMPTY_POLICY: ``lenient`` (default) or ``strict``
- STORYLOOM_OPENING_SOURCE: ``model`` (default) or ``pool``
- STORYLOOM_POOL_FALLBACK: serve a pool question when the model is unreachable
- STORYLOOM_BANNED_PHRASES: comma-separated override of the cliché denylist
- STORYLOOM_LOG_LEVEL: log level for entry points
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationError


class Provider(str, Enum):
    OPENAI = "openai"
    OLLAMA = "ollama"


class EmptyPolicy(str, Enum):
    """What a stage does when the model hands back nothing usable."""

    STRICT = "strict"
    LENIENT = "lenient"


class OpeningSource(str, Enum):
    MODEL = "model"
    POOL = "pool"


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TONE = "natural, specific, reflective"

MIN_WORDS = 300
MAX_WORDS = 650
DEFAULT_MAX_WORDS = MAX_WORDS

CREDENTIAL_ENV = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.OLLAMA: "OLLAMA_API_KEY",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# -------------------------
# Parsing helpers
# -------------------------

def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}")


def _get_choice(env: Mapping[str, str], key: str, enum_cls, default):
    raw = (env.get(key) or "").strip().lower()
    if not raw:
        return enum_cls(default)
    try:
        return enum_cls(raw)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"{key} must be one of: {allowed}; got {raw!r}") from exc


def _get_phrases(env: Mapping[str, str], key: str) -> Optional[Tuple[str, ...]]:
    raw = env.get(key)
    if raw is None:
        return None
    phrases = tuple(p.strip() for p in raw.split(",") if p.strip())
    return phrases or None


# -------------------------
# Settings
# -------------------------

@dataclass(frozen=True)
class StoryloomSettings:
    provider: Provider = Provider.OPENAI
    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    ollama_host: Optional[str] = None
    question_temperature: float = 0.7
    followup_temperature: float = 0.7
    essay_temperature: float = 0.7
    timeout_seconds: float = 60.0
    empty_policy: EmptyPolicy = EmptyPolicy.LENIENT
    opening_source: OpeningSource = OpeningSource.MODEL
    pool_fallback: bool = False
    banned_phrases: Optional[Tuple[str, ...]] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoryloomSettings":
        env = os.environ if environ is None else environ

        provider = _get_choice(env, "STORYLOOM_PROVIDER", Provider, Provider.OPENAI)
        timeout = _get_float(env, "STORYLOOM_TIMEOUT", 60.0)
        if timeout <= 0:
            raise ConfigurationError(f"STORYLOOM_TIMEOUT must be positive, got {timeout}")
        log_level = (env.get("STORYLOOM_LOG_LEVEL") or "INFO").strip().upper()
        if log_level not in _LOG_LEVELS:
            allowed = ", ".join(_LOG_LEVELS)
            raise ConfigurationError(f"STORYLOOM_LOG_LEVEL must be one of: {allowed}; got {log_level!r}")

        return cls(
            provider=provider,
            model=(env.get("STORYLOOM_MODEL") or DEFAULT_MODEL).strip(),
            api_key=(env.get(CREDENTIAL_ENV[provider]) or "").strip() or None,
            ollama_host=(env.get("OLLAMA_HOST") or "").strip() or None,
            question_temperature=_get_float(env, "STORYLOOM_QUESTION_TEMPERATURE", 0.7),
            followup_temperature=_get_float(env, "STORYLOOM_FOLLOWUP_TEMPERATURE", 0.7),
            essay_temperature=_get_float(env, "STORYLOOM_ESSAY_TEMPERATURE", 0.7),
            timeout_seconds=timeout,
            empty_policy=_get_choice(env, "STORYLOOM_EMPTY_POLICY", EmptyPolicy, EmptyPolicy.LENIENT),
            opening_source=_get_choice(env, "STORYLOOM_OPENING_SOURCE", OpeningSource, OpeningSource.MODEL),
            pool_fallback=_get_bool(env, "STORYLOOM_POOL_FALLBACK", False),
            banned_phrases=_get_phrases(env, "STORYLOOM_BANNED_PHRASES"),
            log_level=log_level,
        )

    @property
    def credential_env(self) -> str:
        return CREDENTIAL_ENV[self.provider]

    def stage_options(self) -> dict:
        """Per-stage sampling overrides handed to the adapter."""
        return {
            "questions": {"temperature": self.question_temperature},
            "followup": {"temperature": self.followup_temperature},
            "essay": {"temperature": self.essay_temperature},
        }


__all__ = [
    "Provider",
    "EmptyPolicy",
    "OpeningSource",
    "StoryloomSettings",
    "DEFAULT_TONE",
    "MIN_WORDS",
    "MAX_WORDS",
    "DEFAULT_MAX_WORDS",
]
