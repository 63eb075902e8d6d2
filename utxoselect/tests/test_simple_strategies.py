"""
Tests for largest-first and random selection.
"""

from __future__ import annotations

import pytest

from utxoselect.errors import ExceedsMaxInputs, InsufficientFunds, NoViableSelection
from utxoselect.fees import zero_fee
from utxoselect.models import SelectionContext, UnspentOutput
from utxoselect.strategies.base import (
    eligible_candidates,
    minimum_inputs_required,
    weighted_shuffle,
)
from utxoselect.strategies.largest_first import LargestFirstStrategy
from utxoselect.strategies.random_selection import RandomSelectionStrategy


class TestSharedHelpers:
    """Tests for helpers shared by all strategies."""

    def test_minimum_inputs_required(self, make_context) -> None:
        context = make_context([100, 100, 100], target=250)
        # 3 inputs: 300 >= 250 + 40
        assert minimum_inputs_required([100, 100, 100], context) == 3
        assert minimum_inputs_required([100, 100], context) is None

    def test_dust_excluded_when_not_needed(self, make_context) -> None:
        context = make_context([500, 5, 300], target=100, dust_threshold=10)
        assert [u.value for u in eligible_candidates(context)] == [500, 300]

    def test_dust_included_when_needed(self, make_context) -> None:
        context = make_context([300, 8], target=305, dust_threshold=10, fee_function=zero_fee)
        assert [u.value for u in eligible_candidates(context)] == [300, 8]


class TestLargestFirst:
    """Tests for LargestFirstStrategy."""

    def test_picks_largest(self, example_context: SelectionContext) -> None:
        selection = LargestFirstStrategy().select(example_context)
        assert [u.value for u in selection.inputs] == [500]
        assert selection.fee == 20
        assert selection.change == 30
        assert selection.strategy == "largest-first"

    def test_accumulates_until_covered(self, make_context) -> None:
        context = make_context([100, 400, 300, 200], target=650)
        selection = LargestFirstStrategy().select(context)
        # 400 + 300 = 700 >= 650 + 30
        assert [u.value for u in selection.inputs] == [400, 300]
        assert selection.change == 20

    def test_insufficient_funds(self, make_context) -> None:
        context = make_context([1000], target=1000)
        with pytest.raises(InsufficientFunds) as exc_info:
            LargestFirstStrategy().select(context)
        assert exc_info.value.available == 1000
        assert exc_info.value.required > 1000

    def test_exceeds_max_inputs(self, make_context) -> None:
        context = make_context([100, 100, 100], target=250, max_inputs=1)
        with pytest.raises(ExceedsMaxInputs) as exc_info:
            LargestFirstStrategy().select(context)
        assert exc_info.value.required_inputs == 3
        assert exc_info.value.max_inputs == 1

    def test_immature_outputs_skipped(self, make_context) -> None:
        utxos = [
            UnspentOutput(commitment="coinbase", value=10_000, mature=False),
            UnspentOutput(commitment="regular", value=500),
        ]
        context = make_context(utxos=utxos, target=450)
        selection = LargestFirstStrategy().select(context)
        assert selection.commitments == ["regular"]

    def test_only_immature_funds(self, make_context) -> None:
        utxos = [UnspentOutput(commitment="coinbase", value=10_000, mature=False)]
        context = make_context(utxos=utxos, target=450)
        with pytest.raises(InsufficientFunds):
            LargestFirstStrategy().select(context)

    def test_dust_used_only_as_last_resort(self, make_context) -> None:
        context = make_context([300, 8], target=305, dust_threshold=10, fee_function=zero_fee)
        selection = LargestFirstStrategy().select(context)
        assert [u.value for u in selection.inputs] == [300, 8]
        assert selection.change == 3

    def test_avoid_change_takes_exact_subset(self, make_context) -> None:
        values = [700, 400, 300, 70]
        greedy = LargestFirstStrategy().select(make_context(values, target=440))
        assert [u.value for u in greedy.inputs] == [700]
        assert greedy.change == 240

        # 400 + 70 = 440 + 30 exactly
        context = make_context(values, target=440, avoid_change=True)
        selection = LargestFirstStrategy().select(context)
        assert sorted(u.value for u in selection.inputs) == [70, 400]
        assert selection.change == 0
        assert selection.strategy == "largest-first"

    def test_avoid_change_keeps_prefix_without_exact_subset(self, make_context) -> None:
        context = make_context([500, 300, 200, 100], target=450, avoid_change=True)
        selection = LargestFirstStrategy().select(context)
        assert [u.value for u in selection.inputs] == [500]
        assert selection.change == 30


class TestRandomSelection:
    """Tests for RandomSelectionStrategy."""

    def test_covers_target(self, example_context: SelectionContext) -> None:
        selection = RandomSelectionStrategy().select(example_context)
        assert selection.total >= example_context.target + selection.fee
        assert selection.strategy == "random"

    def test_same_seed_same_selection(self, make_context) -> None:
        values = [120, 340, 560, 780, 910, 230, 450, 670]
        first = RandomSelectionStrategy().select(make_context(values, target=1500, seed=99))
        second = RandomSelectionStrategy().select(make_context(values, target=1500, seed=99))
        assert first.commitments == second.commitments

    def test_input_limit_can_stop_walk(self, make_context) -> None:
        """Only the one large output can fund the payment with a single input."""
        values = [1000] + [1] * 9
        outcomes = []
        for seed in range(50):
            context = make_context(
                values, target=500, max_inputs=1, fee_function=zero_fee, seed=seed
            )
            try:
                outcomes.append(RandomSelectionStrategy().select(context))
            except NoViableSelection as e:
                outcomes.append(e)

        failures = [o for o in outcomes if isinstance(o, NoViableSelection)]
        successes = [o for o in outcomes if not isinstance(o, NoViableSelection)]
        assert failures
        assert all(s.commitments == ["utxo0"] for s in successes)

    def test_priorities_bias_draw(self, make_context) -> None:
        """A heavily weighted output is drawn first on every seed."""
        values = [1000] + [1] * 9
        for seed in range(50):
            context = make_context(
                values,
                target=500,
                max_inputs=1,
                fee_function=zero_fee,
                seed=seed,
                priorities={"utxo0": 1e9},
            )
            assert RandomSelectionStrategy().select(context).commitments == ["utxo0"]

    def test_weighted_shuffle_keeps_outputs(self, make_context) -> None:
        context = make_context([5, 6, 7, 8], target=1, priorities={"utxo2": 3.0})
        shuffled = weighted_shuffle(context.utxos, context, context.random_source())
        assert sorted(u.commitment for u in shuffled) == ["utxo0", "utxo1", "utxo2", "utxo3"]

    def test_insufficient_funds(self, make_context) -> None:
        with pytest.raises(InsufficientFunds):
            RandomSelectionStrategy().select(make_context([100, 200], target=1000))
