"""Configuration models for the chain assistant."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEFAULT_RPC_URL = "https://bssc-rpc.bssc.live"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"

DEFAULT_SYSTEM_INSTRUCTION = """
You are the BSSC AI Assistant. The native token for this network is BSSC.
For questions about the BSSC project, prioritize information from official sources
(like the official website or explorer). Analyze the user's query (which may be a
technical BSSC address, transaction hash, or a general question). Provide a helpful
and professional summary, and refer to the native token as BSSC.

Response format:
1) Do not use any markdown formatting (no bolding, no lists, no code blocks).
2) Use only plain text.
3) Start directly with your explanation.
""".strip()


class AssistantConfig(BaseModel):
    """Credential and endpoints used by the resolver and assistant client."""

    api_key: str = ""
    rpc_url: str = Field(default=DEFAULT_RPC_URL, min_length=1)
    api_base: str = Field(default=DEFAULT_API_BASE, min_length=1)
    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    native_symbol: str = Field(default="BSSC", min_length=1)
    request_timeout_seconds: float | None = Field(default=None, gt=0.0)
    system_instruction: str | None = DEFAULT_SYSTEM_INSTRUCTION

    @property
    def model_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/models/{self.model}:generateContent"

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key.strip())

    @classmethod
    def from_env(cls) -> "AssistantConfig":
        timeout = os.getenv("ASSISTANT_TIMEOUT_SECONDS")
        # An empty ASSISTANT_SYSTEM_INSTRUCTION disables the system instruction.
        instruction = os.getenv("ASSISTANT_SYSTEM_INSTRUCTION", DEFAULT_SYSTEM_INSTRUCTION)
        return cls(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            rpc_url=os.getenv("CHAIN_RPC_URL", DEFAULT_RPC_URL),
            model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
            request_timeout_seconds=float(timeout) if timeout else None,
            system_instruction=instruction or None,
        )
