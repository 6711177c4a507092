"""JSON-RPC balance lookup against the configured chain endpoint."""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any

import httpx

from chain_assistant.config import AssistantConfig
from chain_assistant.types import BalanceKind, BalanceResult

logger = logging.getLogger(__name__)

# Balance context for the assistant assumes 18 fractional digits.
BASE_UNIT_DECIMALS = 18
# The stand-alone balance check reports lamports (9 fractional digits).
CHECK_UNIT_DECIMALS = 9

_MIN_ADDRESS_LENGTH = 32


def format_base_units(raw: Any, decimals: int = BASE_UNIT_DECIMALS) -> str:
    """Convert an integer-like base-unit amount into a 4-place decimal string.

    Scaling is done with `Decimal` so large integers keep full precision; the
    result only passes through `float` for the final fixed-point formatting.
    A missing value counts as zero.
    """

    if raw is None:
        return f"{0.0:.4f}"
    if isinstance(raw, bool):
        raise ValueError(f"Unexpected balance value: {raw!r}")
    amount = Decimal(str(raw).strip())
    if not amount.is_finite():
        raise ValueError(f"Unexpected balance value: {raw!r}")
    scaled = float(amount / Decimal(10) ** decimals)
    if math.isinf(scaled):
        raise ValueError(f"Balance value out of range: {raw!r}")
    return f"{scaled:.4f}"


class BalanceResolver:
    """Resolves a wallet's native balance via a single `getBalance` call."""

    def __init__(
        self,
        config: AssistantConfig,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.request_timeout_seconds)

    @property
    def invalid_address_message(self) -> str:
        return f"Please enter a valid {self.config.native_symbol} address (Solana standard format)."

    def resolve(self, wallet: str) -> BalanceResult:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getBalance",
            "params": [wallet],
        }
        try:
            response = self._client.post(self.config.rpc_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("RPC request to %s failed: %s", self.config.rpc_url, exc)
            return _transport_error(str(exc) or exc.__class__.__name__)

        if not response.is_success:
            logger.warning(
                "RPC request returned status %s: %s",
                response.status_code,
                response.text[:200],
            )
            return _transport_error(
                f"RPC request failed with status {response.status_code}. "
                f"The server reported: {response.text[:100]}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("RPC response is not valid JSON: %s", exc)
            return _transport_error("The server returned a body that is not valid JSON.")

        if not isinstance(data, dict):
            return _transport_error("The server returned an unexpected response shape.")

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            logger.info("RPC error for getBalance: %s", error)
            return BalanceResult(
                kind=BalanceKind.RPC_ERROR,
                message=f"RPC Error: {message or 'Unknown RPC error.'}",
            )

        result = data.get("result")
        raw_value = result.get("value") if isinstance(result, dict) else None
        try:
            formatted = format_base_units(raw_value)
        except (ValueError, ArithmeticError) as exc:
            logger.warning("Could not parse RPC balance value %r: %s", raw_value, exc)
            return _transport_error(f"Could not parse balance value: {raw_value!r}")

        return BalanceResult(
            kind=BalanceKind.OK,
            value=formatted,
            value_present=raw_value is not None,
            raw=raw_value,
        )

    def check(self, query: str) -> str:
        """Run the stand-alone balance check and return display text."""
        if not query or len(query) < _MIN_ADDRESS_LENGTH or " " in query:
            return self.invalid_address_message

        symbol = self.config.native_symbol
        result = self.resolve(query)
        if not result.ok:
            return result.message
        if not result.value_present:
            return f"Address found, but current balance is 0 {symbol}."
        try:
            amount = format_base_units(result.raw, CHECK_UNIT_DECIMALS)
        except (ValueError, ArithmeticError):
            return _transport_error(f"Could not parse balance value: {result.raw!r}").message
        return f"Balance: {amount} {symbol}"

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def _transport_error(detail: str) -> BalanceResult:
    return BalanceResult(
        kind=BalanceKind.TRANSPORT_ERROR,
        message=f"Error: Failed to connect to the chain RPC server. {detail}",
    )
