"""Request orchestration: balance lookup, prompt composition, assistant call."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from typing import Any, Protocol

from chain_assistant.agent.client import MISSING_CREDENTIAL_MESSAGE, AssistantClient
from chain_assistant.agent.prompt import compose_prompt
from chain_assistant.chain.balance import BalanceResolver
from chain_assistant.config import AssistantConfig
from chain_assistant.obs.tracing import Timer, TraceStore
from chain_assistant.types import (
    AssistantResult,
    BalanceResult,
    RequestStatus,
    ResultKind,
    SessionState,
)

logger = logging.getLogger(__name__)

WALLET_PREFIX = "0x"
FETCHING_ACTIVITY = "Fetching balance..."
ANALYZING_ACTIVITY = "Analyzing..."
CHECKING_ACTIVITY = "Checking balance..."

StateObserver = Callable[[SessionState], None]


class BalanceLookup(Protocol):
    def resolve(self, wallet: str) -> BalanceResult:
        """Resolve a wallet balance into a tagged result."""

    def check(self, query: str) -> str:
        """Run a stand-alone balance check and return display text."""


class Assistant(Protocol):
    def ask(self, prompt: str, api_key: str | None = None) -> AssistantResult:
        """Send a prompt and classify the response."""


def is_wallet_candidate(query: str) -> bool:
    """Return True when the query looks like a wallet address.

    Evaluates as `(prefix and len >= 42) or len > 30`; any query longer than
    30 characters qualifies, with or without the prefix.
    """
    return (query.startswith(WALLET_PREFIX) and len(query) >= 42) or len(query) > 30


class Orchestrator:
    """Owns the display slot and serializes one submission at a time.

    A submission is admitted only when the query is non-empty and nothing else
    is in flight. Rejected calls return `None` and leave the state untouched.
    """

    def __init__(
        self,
        *,
        config: AssistantConfig,
        resolver: BalanceLookup,
        assistant: Assistant,
        trace_store: TraceStore | None = None,
    ) -> None:
        self.config = config
        self.resolver = resolver
        self.assistant = assistant
        self.trace_store = trace_store
        self._state = SessionState()
        self._admission = threading.Lock()
        self._observers: list[StateObserver] = []

    @classmethod
    def from_config(
        cls,
        config: AssistantConfig,
        *,
        trace_store: TraceStore | None = None,
    ) -> "Orchestrator":
        return cls(
            config=config,
            resolver=BalanceResolver(config),
            assistant=AssistantClient(config),
            trace_store=trace_store,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, observer: StateObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: StateObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def submit(self, query: str) -> AssistantResult | None:
        """Run one full submission and return the result written to display."""
        if not query:
            return None
        if not self._admission.acquire(blocking=False):
            logger.info("Submission rejected: a request is already in flight")
            return None

        try:
            self._update(status=RequestStatus.IN_FLIGHT, display="", activity="")
            wallet = False
            context = ""
            with Timer() as timer:
                if not self.config.has_credential:
                    logger.warning("Submission aborted: no API key configured")
                    result = AssistantResult(
                        kind=ResultKind.MISSING_CREDENTIAL,
                        text=MISSING_CREDENTIAL_MESSAGE,
                    )
                else:
                    wallet = is_wallet_candidate(query)
                    if wallet:
                        self._update(activity=FETCHING_ACTIVITY)
                        context = self.resolver.resolve(query).as_context()
                    prompt = compose_prompt(query, context)
                    self._update(activity=ANALYZING_ACTIVITY)
                    result = self.assistant.ask(prompt, self.config.api_key)

            self._update(display=result.text)
            logger.info(
                "Submission finished: kind=%s wallet=%s latency_ms=%.1f",
                result.kind.value,
                wallet,
                timer.elapsed_ms,
            )
            if self.trace_store is not None:
                self.trace_store.create_record(
                    query=query,
                    wallet_candidate=wallet,
                    balance_context=context,
                    result_kind=result.kind,
                    display=result.text,
                    status_code=result.status_code,
                    latency_ms=timer.elapsed_ms,
                )
            return result
        finally:
            self._finish()

    def check_balance(self, query: str) -> str | None:
        """Balance-only action; the formatted text replaces the display."""
        if not query:
            return None
        if not self._admission.acquire(blocking=False):
            logger.info("Balance check rejected: a request is already in flight")
            return None

        try:
            self._update(status=RequestStatus.IN_FLIGHT, display="", activity=CHECKING_ACTIVITY)
            text = self.resolver.check(query)
            self._update(display=text)
            return text
        finally:
            self._finish()

    def close(self) -> None:
        for collaborator in (self.resolver, self.assistant):
            close = getattr(collaborator, "close", None)
            if callable(close):
                close()

    def _finish(self) -> None:
        self._state = replace(self._state, status=RequestStatus.IDLE, activity="")
        self._admission.release()
        self._notify()

    def _update(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        self._notify()

    def _notify(self) -> None:
        snapshot = self._state
        for observer in list(self._observers):
            # Observer failures are logged and never replace the submission outcome.
            try:
                observer(snapshot)
            except Exception:
                logger.exception("State observer %r failed", observer)
