"""
Tests for branch and bound and knapsack selection.
"""

from __future__ import annotations

import random
from itertools import combinations

import pytest

from utxoselect.config import BranchAndBoundConfig, KnapsackConfig
from utxoselect.errors import ExceedsMaxInputs, InsufficientFunds, NoViableSelection
from utxoselect.models import SelectionContext
from utxoselect.strategies.branch_and_bound import BranchAndBoundStrategy, branch_and_bound_search
from utxoselect.strategies.knapsack import KnapsackStrategy
from utxoselect.strategies.largest_first import LargestFirstStrategy


def brute_force_min_change(context: SelectionContext) -> int | None:
    """Smallest change over every subset within max_inputs."""
    values = [u.value for u in context.utxos]
    best = None
    for k in range(1, min(context.max_inputs, len(values)) + 1):
        fee = context.fee_for(k)
        for combo in combinations(values, k):
            change = sum(combo) - context.target - fee
            if change >= 0 and (best is None or change < best):
                best = change
    return best


class TestBranchAndBound:
    """Tests for BranchAndBoundStrategy."""

    def test_beats_largest_first(self, example_context: SelectionContext) -> None:
        selection = BranchAndBoundStrategy().select(example_context)
        assert sorted(u.value for u in selection.inputs) == [200, 300]
        assert selection.fee == 30
        assert selection.change == 20
        assert selection.strategy == "branch-and-bound"

        greedy = LargestFirstStrategy().select(example_context)
        assert selection.change <= greedy.change

    def test_exact_match_stops_search(self, make_context) -> None:
        # 400 + 70 = 440 + 30 exactly
        context = make_context([700, 400, 300, 70], target=440)
        selection = BranchAndBoundStrategy().select(context)
        assert selection.change == 0
        assert sorted(u.value for u in selection.inputs) == [70, 400]

    def test_prefers_fewer_inputs_on_tie(self, make_context) -> None:
        # [500] and [300, 210] both leave 30 change
        context = make_context([500, 300, 210], target=450)
        selection = BranchAndBoundStrategy().select(context)
        assert selection.change == 30
        assert selection.input_count == 1

    def test_respects_max_inputs(self, make_context) -> None:
        context = make_context([300, 200, 150, 100, 60], target=450, max_inputs=2)
        selection = BranchAndBoundStrategy().select(context)
        assert selection.input_count <= 2
        assert selection.change == brute_force_min_change(context)

    def test_insufficient_funds(self, make_context) -> None:
        with pytest.raises(InsufficientFunds):
            BranchAndBoundStrategy().select(make_context([1000], target=1000))

    def test_exceeds_max_inputs(self, make_context) -> None:
        context = make_context([100, 100, 100], target=250, max_inputs=1)
        with pytest.raises(ExceedsMaxInputs):
            BranchAndBoundStrategy().select(context)

    def test_iteration_cap(self, example_context: SelectionContext) -> None:
        strategy = BranchAndBoundStrategy(BranchAndBoundConfig(max_iterations=1))
        with pytest.raises(NoViableSelection, match="iteration cap") as exc_info:
            strategy.select(example_context)
        assert exc_info.value.iterations == 1

    def test_waste_tolerance_stops_early(self, example_context: SelectionContext) -> None:
        """The first solution within tolerance is accepted."""
        strategy = BranchAndBoundStrategy(BranchAndBoundConfig(waste_tolerance=50))
        selection = strategy.select(example_context)
        # Include-first descent reaches [500] before anything else
        assert [u.value for u in selection.inputs] == [500]

    def test_search_reports_outcome(self, example_context: SelectionContext) -> None:
        outcome = BranchAndBoundStrategy().search(list(example_context.utxos), example_context)
        assert outcome.change == 20
        assert outcome.cap_reached is False
        assert outcome.iterations > 0

    @pytest.mark.parametrize("seed", range(12))
    def test_matches_brute_force(self, make_context, seed: int) -> None:
        rng = random.Random(seed)
        count = rng.randint(1, 12)
        values = [rng.randint(1, 5_000) for _ in range(count)]
        target = rng.randint(1, max(1, sum(values) // 2))
        context = make_context(values, target=target)

        expected = brute_force_min_change(context)
        if expected is None:
            with pytest.raises(InsufficientFunds):
                BranchAndBoundStrategy().select(context)
            return

        selection = BranchAndBoundStrategy().select(context)
        assert selection.change == expected

    @pytest.mark.parametrize("seed", range(4))
    def test_matches_brute_force_twenty_outputs(self, make_context, seed: int) -> None:
        rng = random.Random(1000 + seed)
        values = [rng.randint(1_000, 100_000) for _ in range(20)]
        context = make_context(values, target=rng.randint(50_000, 150_000), max_inputs=4)

        outcome = branch_and_bound_search(list(context.utxos), context, max_iterations=1_000_000)
        assert outcome.cap_reached is False
        assert outcome.change == brute_force_min_change(context)

    @pytest.mark.parametrize("seed", range(4))
    def test_twenty_outputs_default_config(self, make_context, seed: int) -> None:
        """Default limits find the optimum over all 2**20 subsets."""
        rng = random.Random(2000 + seed)
        values = [rng.randint(1_000, 10_000) for _ in range(20)]
        context = make_context(values, target=sum(values) // 2)

        # Linear fee: change = sum(value - 10) - (target + 10)
        need = context.target + 10
        sums = [0]
        for value in values:
            sums += [s + value - 10 for s in sums]
        expected = min(s - need for s in sums if s >= need)

        selection = BranchAndBoundStrategy().select(context)
        assert selection.change == expected

    def test_fee_table_skips_zero_inputs(self, make_context) -> None:
        """A fee function undefined for zero inputs is never asked for one."""
        context = make_context(
            [500, 300, 200, 100],
            target=450,
            fee_function=lambda i, o: -1 if i == 0 else 10 * i + 5 * o,
        )
        selection = BranchAndBoundStrategy().select(context)
        assert selection.change == 20


class TestKnapsack:
    """Tests for KnapsackStrategy."""

    def test_single_near_exact_output(self, make_context) -> None:
        # 475 - 450 - 20 = 5, within dust threshold 10
        context = make_context([1000, 475, 300], target=450, dust_threshold=10)
        selection = KnapsackStrategy().select(context)
        assert [u.value for u in selection.inputs] == [475]
        assert selection.iterations == 0

    def test_finds_low_change_subset(self, example_context: SelectionContext) -> None:
        selection = KnapsackStrategy().select(example_context)
        assert selection.change == 20
        assert selection.strategy == "knapsack"

    def test_deterministic_with_seed(self, make_context) -> None:
        values = list(range(100, 3_000, 137))
        first = KnapsackStrategy().select(make_context(values, target=4_321, seed=5))
        second = KnapsackStrategy().select(make_context(values, target=4_321, seed=5))
        assert first.commitments == second.commitments

    def test_respects_max_inputs(self, make_context) -> None:
        values = [50] * 30 + [400]
        context = make_context(values, target=400, max_inputs=3)
        selection = KnapsackStrategy(KnapsackConfig(iterations=200)).select(context)
        assert selection.input_count <= 3

    def test_fee_table_skips_zero_inputs(self, make_context) -> None:
        context = make_context(
            [500, 300, 200, 100],
            target=450,
            fee_function=lambda i, o: -1 if i == 0 else 10 * i + 5 * o,
        )
        selection = KnapsackStrategy().select(context)
        assert selection.total >= context.target + selection.fee

    def test_insufficient_funds(self, make_context) -> None:
        with pytest.raises(InsufficientFunds):
            KnapsackStrategy().select(make_context([100, 200], target=1000))

    def test_exceeds_max_inputs(self, make_context) -> None:
        context = make_context([100, 100, 100], target=250, max_inputs=1)
        with pytest.raises(ExceedsMaxInputs):
            KnapsackStrategy().select(context)
