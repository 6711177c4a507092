import pytest
from pydantic import ValidationError

from chain_assistant.config import (
    DEFAULT_MODEL,
    DEFAULT_RPC_URL,
    DEFAULT_SYSTEM_INSTRUCTION,
    AssistantConfig,
)


def test_model_url_embeds_model_identifier() -> None:
    config = AssistantConfig(api_base="https://llm.example/v1beta/", model="gemini-x")

    assert config.model_url == "https://llm.example/v1beta/models/gemini-x:generateContent"


def test_from_env_reads_key_and_endpoints(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "abc")
    monkeypatch.setenv("CHAIN_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("ASSISTANT_TIMEOUT_SECONDS", "12.5")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)

    config = AssistantConfig.from_env()

    assert config.has_credential
    assert config.rpc_url == "https://rpc.example"
    assert config.model == DEFAULT_MODEL
    assert config.request_timeout_seconds == 12.5


def test_from_env_defaults_without_key(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GEMINI_API_KEY",
        "CHAIN_RPC_URL",
        "GEMINI_MODEL",
        "ASSISTANT_TIMEOUT_SECONDS",
        "ASSISTANT_SYSTEM_INSTRUCTION",
    ):
        monkeypatch.delenv(name, raising=False)

    config = AssistantConfig.from_env()

    assert not config.has_credential
    assert config.rpc_url == DEFAULT_RPC_URL
    assert config.request_timeout_seconds is None
    assert config.system_instruction == DEFAULT_SYSTEM_INSTRUCTION


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        AssistantConfig(request_timeout_seconds=0)


def test_system_instruction_can_be_overridden_or_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASSISTANT_SYSTEM_INSTRUCTION", "Answer in one sentence.")
    assert AssistantConfig.from_env().system_instruction == "Answer in one sentence."

    monkeypatch.setenv("ASSISTANT_SYSTEM_INSTRUCTION", "")
    assert AssistantConfig.from_env().system_instruction is None
