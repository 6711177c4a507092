"""Language-model client with HTTP status classification."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from chain_assistant.config import AssistantConfig
from chain_assistant.types import AssistantResult, ResultKind, Source

logger = logging.getLogger(__name__)

MISSING_CREDENTIAL_MESSAGE = (
    "Error: Gemini API Key is missing. Set the GEMINI_API_KEY environment "
    "variable to enable the assistant."
)
FORBIDDEN_MESSAGE = (
    "Error 403: Access forbidden. The API key is invalid, expired, or not "
    "allowed to call this model."
)
NOT_FOUND_MESSAGE = (
    "Error 404: Model endpoint not found. Check that the model identifier and "
    "API version in the endpoint URL are correct."
)
BAD_REQUEST_MESSAGE = (
    "Error 400: The request was rejected as malformed. Check the shape of the "
    "request payload."
)
EMPTY_RESPONSE_MESSAGE = "No response from AI."
TRANSPORT_ERROR_MESSAGE = (
    "Error: Failed to reach the AI service. Check your network connection and "
    "try again."
)

_STATUS_RESULTS: dict[int, tuple[ResultKind, str]] = {
    400: (ResultKind.BAD_REQUEST, BAD_REQUEST_MESSAGE),
    403: (ResultKind.FORBIDDEN, FORBIDDEN_MESSAGE),
    404: (ResultKind.NOT_FOUND, NOT_FOUND_MESSAGE),
}


def http_error_message(status_code: int) -> str:
    return f"Error: AI request failed with status {status_code}."


def build_payload(prompt: str, system_instruction: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
    if system_instruction:
        payload["systemInstruction"] = {"parts": [{"text": system_instruction.strip()}]}
    return payload


class AssistantClient:
    """Sends prompts to the `generateContent` endpoint.

    Every outcome, including transport failures, is returned as an
    `AssistantResult`; `ask` does not raise for network or payload problems.
    """

    def __init__(
        self,
        config: AssistantConfig,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.request_timeout_seconds)

    def ask(self, prompt: str, api_key: str | None = None) -> AssistantResult:
        key = self.config.api_key if api_key is None else api_key
        if not key or not key.strip():
            return AssistantResult(
                kind=ResultKind.MISSING_CREDENTIAL, text=MISSING_CREDENTIAL_MESSAGE
            )

        payload = build_payload(prompt, self.config.system_instruction)
        try:
            response = self._client.post(
                self.config.model_url,
                params={"key": key},
                json=payload,
            )
        except httpx.HTTPError as exc:
            # The request URL carries the key, so only the error type is logged.
            logger.warning("Assistant request failed: %s", exc.__class__.__name__)
            return AssistantResult(kind=ResultKind.TRANSPORT_ERROR, text=TRANSPORT_ERROR_MESSAGE)

        status = response.status_code
        if not response.is_success:
            logger.warning(
                "Assistant request to model %s returned status %s: %s",
                self.config.model,
                status,
                response.text[:500],
            )
            kind, message = _STATUS_RESULTS.get(
                status, (ResultKind.HTTP_ERROR, http_error_message(status))
            )
            return AssistantResult(kind=kind, text=message, status_code=status)

        try:
            data = response.json()
        except ValueError:
            logger.warning("Assistant response with status %s is not valid JSON", status)
            return AssistantResult(
                kind=ResultKind.TRANSPORT_ERROR,
                text=TRANSPORT_ERROR_MESSAGE,
                status_code=status,
            )

        return _parse_success(data, status)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def _parse_success(data: Any, status_code: int) -> AssistantResult:
    candidate = _first(data.get("candidates") if isinstance(data, dict) else None)
    content = candidate.get("content") if candidate else None
    part = _first(content.get("parts") if isinstance(content, dict) else None)
    text = part.get("text") if part else None

    if not isinstance(text, str) or not text:
        logger.info("Assistant response has no text candidate")
        return AssistantResult(
            kind=ResultKind.EMPTY_RESPONSE,
            text=EMPTY_RESPONSE_MESSAGE,
            status_code=status_code,
        )

    return AssistantResult(
        kind=ResultKind.SUCCESS,
        text=text,
        status_code=status_code,
        sources=_extract_sources(candidate),
    )


def _first(items: Any) -> dict[str, Any] | None:
    if not isinstance(items, list) or not items:
        return None
    head = items[0]
    return head if isinstance(head, dict) else None


def _extract_sources(candidate: dict[str, Any]) -> list[Source]:
    metadata = candidate.get("groundingMetadata")
    if not isinstance(metadata, dict):
        return []
    attributions = metadata.get("groundingAttributions")
    if not isinstance(attributions, list):
        return []

    sources: list[Source] = []
    for attribution in attributions:
        web = attribution.get("web") if isinstance(attribution, dict) else None
        if not isinstance(web, dict):
            continue
        uri, title = web.get("uri"), web.get("title")
        if uri and title:
            sources.append(Source(uri=str(uri), title=str(title)))
    return sources
