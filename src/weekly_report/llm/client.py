# src/weekly_report/llm/client.py

"""
Optional generative rewrite of the report draft (OpenAI-compatible API).

The client only polishes wording: it receives the deterministic draft and must
return the same section/item layout. Any failure is raised as ExternalCallError
and the caller falls back to the draft.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import OpenAI

from ..errors import ExternalCallError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You polish weekly status reports. Keep every line that starts with '### ', "
    "every 'a.'-style item line and every indented sub-item line exactly in place; "
    "you may only tighten wording inside them. Keep ✅ markers, progress bars and "
    "percentages unchanged. Output the report only, no commentary."
)

_BAD_MODELS: dict[str, float] = {}  # model -> retry_at (monotonic)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip()
    if not s:
        return default
    try:
        return float(s)
    except ValueError:
        return default


def _timeouts_from_env() -> dict[str, float]:
    """
    Timeouts are configurable via env so a slow model cannot block a submit.

    Defaults:
    - connect timeout: 5s
    - read timeout: 40s (no data from server)
    - first token timeout: 30s (no content tokens)
    """
    first_token = _env_float("WEEKLY_LLM_FIRST_TOKEN_TIMEOUT_SECONDS", 30.0)
    read_timeout = _env_float("WEEKLY_LLM_READ_TIMEOUT_SECONDS", 40.0)
    connect_timeout = _env_float("WEEKLY_LLM_CONNECT_TIMEOUT_SECONDS", 5.0)

    # keep read >= first_token as a sane baseline
    read_timeout = max(read_timeout, first_token)

    return {
        "first_token": first_token,
        "read": read_timeout,
        "connect": connect_timeout,
    }


def _is_auth_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def _is_not_found_error(exc: Exception) -> bool:
    # OpenAI-compatible SDK uses NotFoundError for HTTP 404 (unknown model)
    return exc.__class__.__name__ in {"NotFoundError"}


def _close_stream(stream: Any) -> None:
    """Best-effort close for streaming responses."""
    close = getattr(stream, "close", None)
    if callable(close):
        try:
            close()
        except Exception:
            logger.debug("Stream close failed.", exc_info=True)


class OpenRouterRewriteClient:
    """
    RewriteClient over an OpenAI-compatible endpoint (OpenRouter by default).

    Behavior:
    - Tries models in the configured order.
    - No first content token within the first-token timeout -> next model.
    - 404 (model not available) -> remember for an hour, next model.
    - Rate limit / network issues -> next model.
    - Auth issues -> fail fast.
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = getattr(settings, "openrouter_base_url", "") or ""

        if not api_key or not str(api_key).strip():
            raise ValueError("LLM API key is not set. Set WEEKLY_OPENROUTER_API_KEY in your .env.")
        if not base_url.strip():
            raise ValueError("LLM base URL is not set. Set WEEKLY_OPENROUTER_BASE_URL in your .env.")

        self._models: List[str] = [m.strip() for m in (getattr(settings, "llm_models", []) or []) if m.strip()]
        if not self._models:
            raise ValueError("LLM model list is empty. Set WEEKLY_LLM_MODELS in your .env.")

        self._headers: Dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})
        self._t = _timeouts_from_env()
        self._timeout = httpx.Timeout(
            connect=self._t["connect"],
            read=self._t["read"],
            write=10.0,
            pool=self._t["connect"],
        )
        # Automatic retries are off so a failing model hands over quickly.
        self._client = OpenAI(
            base_url=str(base_url),
            api_key=str(api_key),
            timeout=self._timeout,
            max_retries=0,
        )

    def _try_model(self, model: str, prompt: str) -> str:
        first_token_timeout = float(self._t["first_token"])
        t0 = time.monotonic()
        deadline = t0 + first_token_timeout

        stream = self._client.chat.completions.create(
            model=model,
            stream=True,
            extra_headers=self._headers or None,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            timeout=self._timeout,
        )
        parts: list[str] = []
        try:
            for chunk in stream:
                if not parts and time.monotonic() > deadline:
                    raise TimeoutError(f"First token timeout on model: {model}")
                if not chunk.choices:
                    continue
                delta = getattr(chunk.choices[0], "delta", None)
                content = getattr(delta, "content", None) if delta is not None else None
                if content:
                    if not parts:
                        logger.info("LLM: first token from model=%s (%.2fs)", model, time.monotonic() - t0)
                    parts.append(content)
        finally:
            _close_stream(stream)

        text = "".join(parts).strip()
        if not text:
            raise RuntimeError(f"Model returned no content: {model}")
        return text

    def rewrite(self, prompt: str) -> str:
        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in self._models:
            retry_at = _BAD_MODELS.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", model)
            try:
                return self._try_model(model, prompt)
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise ExternalCallError(
                        "LLM authentication failed. Check WEEKLY_OPENROUTER_API_KEY.", operation="rewrite"
                    ) from e

                if _is_not_found_error(e):
                    _BAD_MODELS[model] = time.monotonic() + 3600.0  # 1 hour
                    logger.info("LLM: model not available (404): %s", model)
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)

        raise ExternalCallError("All LLM models failed.", operation="rewrite") from last_error
