from __future__ import annotations


class GatewayError(Exception):
    """Base error of the token gateway. `reason` is safe to show to callers."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidInputError(GatewayError):
    """Malformed address or amount. Raised before any external call."""


class ProviderError(GatewayError):
    """Chain read failure or a broadcast the node never accepted."""


class TxFailedError(GatewayError):
    """Broadcast accepted, but the receipt reports a revert or the wait failed."""

    def __init__(self, reason: str, *, tx_hash: str | None = None) -> None:
        super().__init__(reason)
        self.tx_hash = tx_hash


class TxConfirmationTimeoutError(TxFailedError):
    """
    Broadcast accepted but inclusion was not observed within the confirmation window.

    The transaction may still be mined later; callers get the hash to track it.
    """


class HistoryUnavailableError(GatewayError):
    """Indexing API failure."""
