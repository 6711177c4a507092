"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RequestStatus(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class ResultKind(str, Enum):
    """Classification of an assistant call outcome."""

    SUCCESS = "success"
    MISSING_CREDENTIAL = "missing_credential"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    HTTP_ERROR = "http_error"
    EMPTY_RESPONSE = "empty_response"
    TRANSPORT_ERROR = "transport_error"


class BalanceKind(str, Enum):
    OK = "ok"
    RPC_ERROR = "rpc_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(slots=True)
class Source:
    """A grounding attribution returned with an assistant answer."""

    uri: str
    title: str


@dataclass(slots=True)
class AssistantResult:
    """Terminal value written back to the display slot."""

    kind: ResultKind
    text: str
    status_code: int | None = None
    sources: list[Source] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind is ResultKind.SUCCESS


@dataclass(slots=True)
class BalanceResult:
    """Outcome of a single `getBalance` lookup."""

    kind: BalanceKind
    value: str = ""
    message: str = ""
    value_present: bool = True
    raw: Any = None

    @property
    def ok(self) -> bool:
        return self.kind is BalanceKind.OK

    def as_context(self) -> str:
        return self.value if self.ok else self.message


@dataclass(frozen=True, slots=True)
class SessionState:
    """Observable snapshot of the orchestrator's display slot."""

    status: RequestStatus = RequestStatus.IDLE
    display: str = ""
    activity: str = ""
