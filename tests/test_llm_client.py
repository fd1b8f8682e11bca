# tests/test_llm_client.py

from __future__ import annotations

from types import SimpleNamespace

import pytest

from weekly_report.errors import ExternalCallError
from weekly_report.llm import client as llm_client
from weekly_report.llm.client import OpenRouterRewriteClient


class NotFoundError(Exception):
    pass


class AuthenticationError(Exception):
    pass


def _settings(**kw) -> SimpleNamespace:
    base = dict(
        openrouter_api_key="key",
        openrouter_base_url="https://llm.example/v1",
        llm_models=["m-missing", "m-good"],
        extra_headers={},
    )
    base.update(kw)
    return SimpleNamespace(**base)


def _chunk(text: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def _with_fake_api(client: OpenRouterRewriteClient, create) -> None:
    client._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def test_unconfigured_client_is_rejected() -> None:
    with pytest.raises(ValueError):
        OpenRouterRewriteClient(_settings(openrouter_api_key=None))
    with pytest.raises(ValueError):
        OpenRouterRewriteClient(_settings(llm_models=[]))


def test_falls_through_to_next_model(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm_client, "_BAD_MODELS", {})
    client = OpenRouterRewriteClient(_settings())
    tried: list[str] = []

    def create(*, model, **kwargs):
        tried.append(model)
        if model == "m-missing":
            raise NotFoundError("no such model")
        return [_chunk("### 1. Plan"), _chunk("\n\na. Ship it")]

    _with_fake_api(client, create)

    assert client.rewrite("draft") == "### 1. Plan\n\na. Ship it"
    assert tried == ["m-missing", "m-good"]
    assert "m-missing" in llm_client._BAD_MODELS

    # The unavailable model is skipped while it is remembered.
    tried.clear()
    client.rewrite("draft")
    assert tried == ["m-good"]


def test_auth_error_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm_client, "_BAD_MODELS", {})
    client = OpenRouterRewriteClient(_settings())
    tried: list[str] = []

    def create(*, model, **kwargs):
        tried.append(model)
        raise AuthenticationError("bad key")

    _with_fake_api(client, create)

    with pytest.raises(ExternalCallError) as ei:
        client.rewrite("draft")
    assert ei.value.operation == "rewrite"
    assert tried == ["m-missing"]


def test_all_models_failing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(llm_client, "_BAD_MODELS", {})
    client = OpenRouterRewriteClient(_settings())

    def create(*, model, **kwargs):
        return [_chunk("")]

    _with_fake_api(client, create)

    with pytest.raises(ExternalCallError, match="All LLM models failed"):
        client.rewrite("draft")
