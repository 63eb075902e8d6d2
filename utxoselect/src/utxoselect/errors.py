"""
Coin selection error taxonomy.

InvalidContext is fatal and never retried. InsufficientFunds and
ExceedsMaxInputs describe the snapshot itself and are surfaced to the caller.
NoViableSelection is a strategy-specific exhaustion that the CoinSelector
recovers from by trying the next strategy in its chain.
"""

from __future__ import annotations

from typing import Any


class CoinSelectionError(Exception):
    """Base class for all coin selection failures."""

    pass


class InvalidContext(CoinSelectionError):
    """The selection request is malformed."""

    pass


class InsufficientFunds(CoinSelectionError):
    """No combination of spendable outputs covers target plus fee."""

    def __init__(self, required: int, available: int, message: str | None = None):
        self.required = required
        self.available = available
        super().__init__(
            message or f"Insufficient funds: need at least {required}, have {available}"
        )


class ExceedsMaxInputs(CoinSelectionError):
    """Covering the target needs more inputs than the request allows."""

    def __init__(self, required_inputs: int, max_inputs: int):
        self.required_inputs = required_inputs
        self.max_inputs = max_inputs
        super().__init__(
            f"Covering the target needs at least {required_inputs} inputs, "
            f"limit is {max_inputs}"
        )


class NoViableSelection(CoinSelectionError):
    """A strategy exhausted its search without a usable selection."""

    def __init__(
        self,
        message: str,
        iterations: int = 0,
        attempts: list[Any] | None = None,
    ):
        self.iterations = iterations
        self.attempts = attempts or []
        super().__init__(message)


class UnknownStrategyError(CoinSelectionError, KeyError):
    """Requested strategy is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown selection strategy: {name}")

    def __str__(self) -> str:
        return str(self.args[0])
