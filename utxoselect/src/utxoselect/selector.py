"""
Coin selector: runs the strategy fallback chain for a selection request.
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from loguru import logger

from utxoselect.config import SelectorConfig
from utxoselect.errors import (
    CoinSelectionError,
    InvalidContext,
    NoViableSelection,
    UnknownStrategyError,
)
from utxoselect.models import (
    SelectionContext,
    SelectionGoal,
    SelectionMetadata,
    SelectionResult,
    StrategyAttempt,
    StrategyName,
    UtxoSelection,
)
from utxoselect.privacy import privacy_loss
from utxoselect.strategies.base import eligible_candidates, raise_shortfall
from utxoselect.strategies.factory import SelectionStrategyFactory
from utxoselect.strategies.optimization import OptimizationStrategy


class CoinSelector:
    """
    Picks inputs for a payment.

    Strategies run in the order inferred from the request until one
    succeeds. The winning selection is refined by local search and returned
    with diagnostics. Only the terminal failure reaches the caller.
    """

    def __init__(self, config: SelectorConfig | None = None):
        self.config = config or SelectorConfig()
        self.factory = SelectionStrategyFactory(self.config)
        self.optimizer = OptimizationStrategy(self.config.optimization, self.config.privacy)

    def available_strategies(self) -> list[StrategyName]:
        return self.factory.available()

    def _run(
        self, name: StrategyName, context: SelectionContext
    ) -> tuple[UtxoSelection | CoinSelectionError, StrategyAttempt]:
        """Run one strategy, capturing both the outcome and its attempt record."""
        strategy = self.factory.create(name)
        start = time.time()
        try:
            selection = strategy.select(context)
        except InvalidContext:
            raise
        except CoinSelectionError as e:
            elapsed_ms = (time.time() - start) * 1000
            return e, StrategyAttempt(
                strategy=name.value,
                succeeded=False,
                iterations=getattr(e, "iterations", 0),
                elapsed_ms=elapsed_ms,
                error=type(e).__name__,
                message=str(e),
            )

        elapsed_ms = (time.time() - start) * 1000
        return selection, StrategyAttempt(
            strategy=name.value,
            succeeded=True,
            iterations=selection.iterations,
            elapsed_ms=elapsed_ms,
        )

    def _finish(
        self,
        selection: UtxoSelection,
        context: SelectionContext,
        attempts: list[StrategyAttempt],
        refine: bool,
    ) -> SelectionResult:
        swaps = 0
        if refine:
            selection, swaps = self.optimizer.refine(selection, context)

        metadata = SelectionMetadata(
            attempts=attempts,
            waste=selection.change,
            privacy_loss=privacy_loss(selection.inputs, context, self.config.privacy),
            refined=swaps > 0,
            refinement_swaps=swaps,
            candidates_considered=len(eligible_candidates(context)),
        )
        logger.info(
            f"Selected {selection.input_count} inputs via {selection.strategy}: "
            f"total={selection.total}, fee={selection.fee}, change={selection.change}"
        )
        return SelectionResult(selection=selection, metadata=metadata)

    def _terminal_error(
        self, context: SelectionContext, attempts: list[StrategyAttempt]
    ) -> NoViableSelection:
        # Raises InsufficientFunds / ExceedsMaxInputs when the snapshot itself is short
        raise_shortfall(context)
        tried = ", ".join(a.strategy for a in attempts)
        return NoViableSelection(
            f"All strategies failed ({tried})",
            iterations=sum(a.iterations for a in attempts),
            attempts=attempts,
        )

    def select(self, context: SelectionContext) -> SelectionResult:
        """
        Select inputs using the inferred fallback chain.

        Raises:
            InvalidContext: Malformed request
            InsufficientFunds: No subset covers target plus fee
            ExceedsMaxInputs: Covering needs more inputs than allowed
            NoViableSelection: Every strategy gave up
        """
        context.check()

        order = self.factory.strategy_order(context)
        logger.debug(
            f"Selecting for target {context.target} from {len(context.utxos)} outputs, "
            f"order: {', '.join(n.value for n in order)}"
        )

        attempts: list[StrategyAttempt] = []
        for name in order:
            outcome, attempt = self._run(name, context)
            attempts.append(attempt)
            if isinstance(outcome, UtxoSelection):
                return self._finish(outcome, context, attempts, refine=self.config.refine)
            logger.warning(f"Strategy {name.value} failed: {outcome}")

        raise self._terminal_error(context, attempts)

    def select_with_strategy(
        self, context: SelectionContext, name: StrategyName | str
    ) -> SelectionResult:
        """
        Run a single strategy, without fallback.

        Raises:
            UnknownStrategyError: If name is not registered
            CoinSelectionError: Whatever the strategy raises
        """
        context.check()
        strategy = self.factory.create(name)

        start = time.time()
        selection = strategy.select(context)
        attempt = StrategyAttempt(
            strategy=strategy.name.value,
            succeeded=True,
            iterations=selection.iterations,
            elapsed_ms=(time.time() - start) * 1000,
        )
        return self._finish(selection, context, [attempt], refine=self.config.refine)

    def compare_strategies(
        self,
        context: SelectionContext,
        names: Iterable[StrategyName | str] | None = None,
    ) -> dict[str, UtxoSelection | CoinSelectionError]:
        """
        Run several strategies on the same request.

        Returns:
            Strategy name -> raw selection, or the error it raised
        """
        context.check()
        if names is None:
            names = self.available_strategies()

        results: dict[str, UtxoSelection | CoinSelectionError] = {}
        for name in names:
            try:
                strategy_name = StrategyName(name)
            except ValueError:
                raise UnknownStrategyError(str(name)) from None
            outcome, _ = self._run(strategy_name, context)
            results[strategy_name.value] = outcome
        return results

    def find_optimal_selection(
        self, context: SelectionContext, goal: SelectionGoal | str = SelectionGoal.WASTE
    ) -> SelectionResult:
        """
        Run every strategy and keep the best result for the given goal.

        Raises:
            InsufficientFunds / ExceedsMaxInputs / NoViableSelection: If no strategy succeeds
        """
        goal = SelectionGoal(goal)
        context.check()

        attempts: list[StrategyAttempt] = []
        successes: list[UtxoSelection] = []
        for name in self.available_strategies():
            outcome, attempt = self._run(name, context)
            attempts.append(attempt)
            if isinstance(outcome, UtxoSelection):
                successes.append(outcome)

        if not successes:
            raise self._terminal_error(context, attempts)

        def score(s: UtxoSelection) -> tuple[float, ...]:
            if goal == SelectionGoal.FEE:
                return (s.fee, s.change, s.input_count)
            if goal == SelectionGoal.PRIVACY:
                return (privacy_loss(s.inputs, context, self.config.privacy), s.change)
            if goal == SelectionGoal.INPUTS:
                return (s.input_count, s.change)
            return (s.change, s.input_count)

        best = min(successes, key=score)
        logger.debug(f"Best selection for goal {goal.value}: {best.strategy}")
        return self._finish(best, context, attempts, refine=False)
