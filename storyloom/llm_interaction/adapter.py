from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

import httpx
import ollama
import openai
from ollama import RequestError, ResponseError

from ..errors import CompletionTimeout, ConfigurationError, StoryloomError, UpstreamError
from ..settings import Provider, StoryloomSettings

logger = logging.getLogger(__name__)

Message = Dict[str, str]

# sampling knobs forwarded to the OpenAI chat API besides temperature
_OPENAI_PASSTHROUGH = {"top_p", "max_tokens", "presence_penalty", "frequency_penalty", "seed"}


@dataclass(frozen=True)
class SamplingParams:
    model: str
    temperature: float = 0.7
    options: Mapping[str, Any] = field(default_factory=dict)


class CompletionClient(Protocol):
    """Anything that turns role-tagged messages into generated text."""

    def complete(self, messages: Sequence[Message], params: SamplingParams) -> str:
        ...


# =========================
# Vendor clients
# =========================

class OpenAICompletionClient:
    """Chat completions over the OpenAI API."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 60.0,
        max_retries: int = 0,
        client: Optional[Any] = None,
    ) -> None:
        self.timeout = timeout
        self._client = client or openai.OpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
        )

    def complete(self, messages: Sequence[Message], params: SamplingParams) -> str:
        extra = {k: v for k, v in params.options.items() if k in _OPENAI_PASSTHROUGH}
        try:
            response = self._client.chat.completions.create(
                model=params.model,
                messages=list(messages),
                temperature=params.temperature,
                **extra,
            )
        except openai.APITimeoutError as exc:
            raise CompletionTimeout(
                f"Completion timed out after {self.timeout:g}s", cause=exc
            ) from exc
        except openai.OpenAIError as exc:
            raise UpstreamError(str(exc) or exc.__class__.__name__, cause=exc) from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None) or ""


class OllamaCompletionClient:
    """Chat over an Ollama daemon (local, or hosted with a bearer key)."""

    def __init__(
        self,
        *,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ) -> None:
        self.timeout = timeout
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        self._client = client or ollama.Client(host=host, timeout=timeout, headers=headers)

    def complete(self, messages: Sequence[Message], params: SamplingParams) -> str:
        options = dict(params.options)
        options["temperature"] = params.temperature
        try:
            response = self._client.chat(
                model=params.model,
                messages=list(messages),
                options=options,
            )
        except ResponseError as exc:
            raw = _extract_raw_from_error(exc)
            if raw:
                return raw
            raise UpstreamError(f"Ollama error: {exc}", cause=exc) from exc
        except httpx.TimeoutException as exc:
            raise CompletionTimeout(
                f"Completion timed out after {self.timeout:g}s", cause=exc
            ) from exc
        except (RequestError, httpx.HTTPError, ConnectionError) as exc:
            raise UpstreamError(f"Ollama request failed: {exc}", cause=exc) from exc
        return _extract_content(response)


def _extract_content(response: Any) -> str:
    message = getattr(response, "message", None)

    if message is None and isinstance(response, dict):
        message = response.get("message")

    if not message:
        return ""

    if hasattr(message, "model_dump"):
        payload = message.model_dump(exclude_none=True)
    elif isinstance(message, dict):
        payload = message
    else:
        return ""

    content = payload.get("content", "")

    if isinstance(content, list):
        content = "".join(map(str, content))

    return str(content)


def _extract_raw_from_error(exc: Exception) -> Optional[str]:
    msg = str(exc)
    marker = "raw='"
    start = msg.find(marker)
    if start == -1:
        return None
    start += len(marker)
    end = msg.find("'", start)
    return None if end == -1 else msg[start:end]


def build_completion_client(settings: StoryloomSettings) -> CompletionClient:
    """Construct the configured vendor client. Fails on a missing credential."""
    if settings.provider is Provider.OPENAI:
        if not settings.api_key:
            raise ConfigurationError(
                f"Missing credential: set {settings.credential_env} to call the completion service."
            )
        return OpenAICompletionClient(settings.api_key, timeout=settings.timeout_seconds)

    if settings.provider is Provider.OLLAMA:
        return OllamaCompletionClient(
            host=settings.ollama_host,
            api_key=settings.api_key,
            timeout=settings.timeout_seconds,
        )

    raise ConfigurationError(f"Unknown completion provider: {settings.provider!r}")


# =========================
# Stage-aware adapter
# =========================

class LLMAdapter:
    """
    Thin gateway between the stages and a completion client.
    Resolves per-stage sampling parameters and normalizes failures.
    One call per request, no retries.
    """

    def __init__(
        self,
        client_factory: Callable[[], CompletionClient],
        *,
        model: str,
        default_options: Optional[Mapping[str, Any]] = None,
        stage_options: Optional[Mapping[str, Mapping[str, Any]]] = None,
        verbose: bool = False,
    ) -> None:
        self.client_factory = client_factory
        self.model = model
        self.default_options = dict(default_options or {})
        self.stage_options = {k: dict(v) for k, v in (stage_options or {}).items()}
        self.verbose = verbose
        self._client: Optional[CompletionClient] = None

    @classmethod
    def from_settings(cls, settings: StoryloomSettings, *, verbose: bool = False) -> "LLMAdapter":
        return cls(
            lambda: build_completion_client(settings),
            model=settings.model,
            default_options={"temperature": 0.7},
            stage_options=settings.stage_options(),
            verbose=verbose,
        )

    # -------------------------------------------------

    @property
    def client(self) -> CompletionClient:
        if self._client is None:
            self._client = self.client_factory()
        return self._client

    def sampling_for(self, stage: str) -> SamplingParams:
        options = dict(self.default_options)
        options.update(self.stage_options.get(stage, {}))
        temperature = float(options.pop("temperature", 0.7))
        return SamplingParams(model=self.model, temperature=temperature, options=options)

    def request_text(self, stage: str, messages: List[Message]) -> str:
        params = self.sampling_for(stage)
        client = self.client

        logger.info("[%s] request started (model=%s, temperature=%s)", stage.upper(), params.model, params.temperature)
        if self.verbose:
            logger.debug("[%s] messages:\n%s", stage.upper(), json.dumps(messages, indent=2))

        try:
            content = client.complete(messages, params)
        except StoryloomError:
            logger.warning("[%s] completion failed", stage.upper(), exc_info=True)
            raise
        except Exception as exc:
            logger.warning("[%s] completion client raised %s", stage.upper(), exc.__class__.__name__, exc_info=True)
            raise UpstreamError(str(exc) or exc.__class__.__name__, cause=exc) from exc

        content = content or ""
        logger.info("[%s] finished (%s chars)", stage.upper(), len(content))
        if self.verbose:
            logger.debug("[%s] raw response: %s", stage.upper(), content)
        return content


__all__ = [
    "Message",
    "SamplingParams",
    "CompletionClient",
    "OpenAICompletionClient",
    "OllamaCompletionClient",
    "build_completion_client",
    "LLMAdapter",
]
