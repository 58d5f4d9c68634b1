"""
Exception hierarchy for the arbitrage monitor.

Quote failures are layered: the oracle client raises QuoteUnavailable,
the quote chain wraps it in LegFailure with the failing step, and the
cycle searcher turns a LegFailure into ScanSkipped for its own bookkeeping.
"""

from typing import Any, Dict, Optional, Sequence


class ArbMonitorError(Exception):
    """Base exception for all arbitrage monitor errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ArbMonitorError):
    """Raised when config is invalid or missing required fields."""

    pass


class ValidationError(ArbMonitorError):
    """Raised when a token, triple or selection is malformed."""

    pass


class NetworkError(ArbMonitorError):
    """Raised when no RPC endpoint can be reached."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class QuoteUnavailable(ArbMonitorError):
    """
    Raised when the quoting oracle cannot price a swap.

    Causes (no liquidity path, transient fault, malformed parameters) are
    not distinguished; ``reason`` keeps the raw endpoint message.
    """

    def __init__(
        self,
        token_in: str,
        token_out: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(f"{token_in} -> {token_out}: {reason}", details)
        self.token_in = token_in
        self.token_out = token_out
        self.reason = reason


class LegFailure(ArbMonitorError):
    """
    Raised when one leg of a three-leg quote chain fails.

    Attributes:
        step: 1-based index of the failing leg
        cause: The underlying QuoteUnavailable
        completed: LegQuotes for the legs that succeeded before the failure
    """

    def __init__(
        self,
        step: int,
        cause: QuoteUnavailable,
        completed: Sequence[Any] = (),
    ):
        if step not in (1, 2, 3):
            raise ValueError(f"step must be 1, 2 or 3, got {step}")
        super().__init__(
            f"Step {step} ({cause.token_in} -> {cause.token_out}) failed: {cause.reason}"
        )
        self.step = step
        self.cause = cause
        self.completed = tuple(completed)


class ScanSkipped(ArbMonitorError):
    """Internal signal: a discovery candidate was dropped after a leg failure."""

    def __init__(self, triple: Any, failure: LegFailure):
        super().__init__(f"Skipped {triple}: {failure}")
        self.triple = triple
        self.failure = failure
