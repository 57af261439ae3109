import tracemalloc
from threading import Event

import numpy as np
import pytest
from scipy.stats import hypergeom

from errors import InvalidConfiguration, SimulationAborted
from probabilities import (
    FILLER_ID,
    CombineMode,
    Condition,
    SimulationResult,
    build_deck,
    combine,
    copies_drawn,
    count_successes,
    cycle_sizes,
    deck_size_for,
    draw_sample_hand,
    estimate_probability,
    hands_satisfying,
    label_slots,
    run_trial,
    satisfies,
    simulate_conditions,
)
from shufflers import FastShuffler, StrongShuffler


# Deck model

def test_deck_size_policy():
    assert deck_size_for(constructed=True) == 60
    assert deck_size_for(constructed=False) == 40
    assert deck_size_for(constructed=True, companion=True) == 80
    assert deck_size_for(constructed=False, companion=True) == 60


def test_build_deck_composition(two_conditions):
    deck = build_deck(two_conditions, 60)
    assert len(deck) == 60
    for condition in two_conditions:
        assert np.count_nonzero(deck == condition.id) == condition.copies_in_deck
    assert np.count_nonzero(deck == FILLER_ID) == 60 - 24


def test_build_deck_is_deterministic(two_conditions):
    assert build_deck(two_conditions, 40).tolist() == build_deck(two_conditions, 40).tolist()


def test_build_deck_exactly_full():
    condition = Condition("Island", 10, 1)
    assert build_deck([condition], 10).tolist() == [condition.id] * 10


def test_build_deck_too_many_copies():
    conditions = [Condition("a", 30, 1), Condition("b", 31, 1)]
    with pytest.raises(InvalidConfiguration):
        build_deck(conditions, 60)


def test_build_deck_rejects_shared_ids():
    with pytest.raises(InvalidConfiguration):
        build_deck([Condition("a", 4, 1, id=5), Condition("b", 4, 1, id=5)], 60)


def test_build_deck_rejects_empty_deck(bolt):
    with pytest.raises(InvalidConfiguration):
        build_deck([bolt], 0)


# Conditions

def test_conditions_get_unique_ids():
    ids = {Condition().id for _ in range(10)}
    assert len(ids) == 10
    assert FILLER_ID not in ids


@pytest.mark.parametrize("copies, min_drawn", [(0, 1), (4, 0), (3, 4)])
def test_invalid_condition(copies, min_drawn):
    with pytest.raises(InvalidConfiguration):
        Condition("Bolt", copies, min_drawn)


def test_filler_id_is_reserved():
    with pytest.raises(InvalidConfiguration):
        Condition("Bolt", id=FILLER_ID)


def test_is_simple():
    assert Condition("Bolt", 4, 1).is_simple
    assert not Condition("Bolt", 4, 2).is_simple
    assert not Condition("  ", 4, 1).is_simple


# Evaluator

def test_satisfies_boundary():
    hand = [5, 5, FILLER_ID, 7, 5]
    assert satisfies(hand, Condition("x", 4, 3, id=5))
    assert not satisfies(hand, Condition("x", 4, 4, id=5))
    assert satisfies(hand, Condition("y", 1, 1, id=7))
    assert not satisfies(hand, Condition("z", 1, 1, id=9))


def test_satisfies_empty_hand(bolt):
    assert not satisfies([], bolt)


def test_combine_modes():
    assert not combine([True, False], CombineMode.AND)
    assert combine([True, False], CombineMode.OR)
    assert combine([True, True], "AND")
    assert not combine([False, False], "OR")


def test_combine_rows():
    rows = [np.array([True, True, False]), np.array([True, False, False])]
    assert combine(rows, CombineMode.AND).tolist() == [True, False, False]
    assert combine(rows, CombineMode.OR).tolist() == [True, True, False]


# Aggregator

def test_cycle_sizes():
    assert cycle_sizes(400_000, 100) == [4000] * 100
    assert cycle_sizes(10, 3) == [4, 3, 3]
    assert cycle_sizes(5, 100) == [1] * 5


def test_run_trial_full_deck_hand():
    condition = Condition("Bolt", 4, 4)
    deck = build_deck([condition], 10)
    assert run_trial(deck, [condition], 10, CombineMode.AND, StrongShuffler())


def test_count_successes_is_bounded(bolt, seeded_shuffler):
    deck = build_deck([bolt], 60)
    successes = count_successes(deck, [bolt], 7, CombineMode.AND, 1000, seeded_shuffler)
    assert 0 < successes < 1000


@pytest.mark.parametrize("draw_count", [10, 15])
def test_degenerate_hand_is_certain(draw_count):
    conditions = [Condition("Bolt", 4, 4), Condition("Shock", 3, 3)]
    result = simulate_conditions(conditions, 10, draw_count, CombineMode.AND, 2000)
    assert result.success_count == 2000
    assert result.probability == 1.0


def test_degenerate_hand_with_strong_shuffler():
    condition = Condition("Bolt", 4, 4)
    result = simulate_conditions([condition], 10, 10, "AND", 500, shuffler=StrongShuffler())
    assert result.probability == 1.0


def test_one_short_of_the_whole_deck_is_not_certain(seeded_shuffler):
    condition = Condition("Bolt", 4, 4)
    result = simulate_conditions([condition], 10, 9, "AND", 20_000, shuffler=seeded_shuffler)
    assert 0.5 < result.probability < 0.7


def test_single_condition_matches_hypergeometric(bolt, seeded_shuffler):
    expected = hypergeom.sf(0, 60, 4, 7)
    result = simulate_conditions([bolt], 60, 7, CombineMode.AND, 100_000, shuffler=seeded_shuffler)
    assert result.total_trials == 100_000
    assert result.probability == pytest.approx(expected, abs=0.01)
    assert result.probability == pytest.approx(0.3995, abs=0.01)


def test_probability_falls_as_min_drawn_rises(seeded_shuffler):
    estimates = []
    for min_drawn in range(1, 5):
        condition = Condition("Bolt", 4, min_drawn)
        result = simulate_conditions([condition], 60, 7, "AND", 50_000, shuffler=seeded_shuffler.spawn(1)[0])
        estimates.append(result.probability)
    for higher, lower in zip(estimates, estimates[1:]):
        assert lower <= higher + 0.005


def test_or_is_at_least_and(two_conditions, seeded_shuffler):
    deck = build_deck(two_conditions, 60)
    both = estimate_probability(deck, two_conditions, 7, "AND", 40_000, shuffler=FastShuffler(1))
    either = estimate_probability(deck, two_conditions, 7, "OR", 40_000, shuffler=FastShuffler(1))
    assert either.probability >= both.probability
    assert either.probability > 0.8


def test_progress_is_monotonic_and_complete(bolt):
    calls = []
    deck = build_deck([bolt], 60)
    estimate_probability(deck, [bolt], 7, "AND", 1000, lambda done, total: calls.append((done, total)), cycles=10)
    assert len(calls) == 10
    assert [done for done, _ in calls] == list(range(100, 1001, 100))
    assert all(total == 1000 for _, total in calls)


def test_progress_with_workers(bolt):
    calls = []
    deck = build_deck([bolt], 60)
    estimate_probability(deck, [bolt], 7, "AND", 999, lambda done, total: calls.append(done),
                         cycles=7, workers=3)
    assert len(calls) == 7
    assert calls == sorted(calls)
    assert calls[-1] == 999


def test_seed_gives_same_result_with_and_without_workers(two_conditions):
    deck = build_deck(two_conditions, 60)
    sequential = estimate_probability(deck, two_conditions, 7, "AND", 20_000, shuffler=FastShuffler(5))
    sharded = estimate_probability(deck, two_conditions, 7, "AND", 20_000, shuffler=FastShuffler(5), workers=4)
    assert sequential == sharded


def test_cancelled_before_start(bolt):
    cancel = Event()
    cancel.set()
    with pytest.raises(SimulationAborted):
        simulate_conditions([bolt], 60, 7, "AND", 1000, cancel_event=cancel)


@pytest.mark.parametrize("workers", [None, 2])
def test_cancelled_mid_run(bolt, workers):
    cancel = Event()
    calls = []

    def sink(done, total):
        calls.append(done)
        cancel.set()

    with pytest.raises(SimulationAborted):
        simulate_conditions([bolt], 60, 7, "AND", 10_000, sink, cycles=100, workers=workers, cancel_event=cancel)
    assert calls and calls[-1] < 10_000


@pytest.mark.parametrize("kwargs", [
    {"conditions": []},
    {"draw_count": 0},
    {"draw_count": -3},
    {"trial_count": 0},
    {"combine_mode": "XOR"},
])
def test_invalid_configuration(bolt, kwargs):
    arguments = {
        "conditions": [bolt],
        "draw_count": 7,
        "combine_mode": "AND",
        "trial_count": 100,
    }
    arguments.update(kwargs)
    calls = []
    with pytest.raises(InvalidConfiguration):
        estimate_probability(build_deck([bolt], 60), progress_sink=lambda *a: calls.append(a), **arguments)
    assert calls == []


def test_invalid_configuration_too_many_copies():
    with pytest.raises(InvalidConfiguration):
        simulate_conditions([Condition("a", 40, 1), Condition("b", 21, 1)], 60, 7, "AND", 100)


def test_simulation_result_probability():
    result = SimulationResult(25, 100)
    assert result.probability == 0.25
    assert isinstance(result.probability, float)


# Sample hands

def test_draw_sample_hand(two_conditions):
    deck, hand = draw_sample_hand(two_conditions, 60, 7)
    assert len(hand) == 7
    assert sorted(deck.tolist()) == sorted(build_deck(two_conditions, 60).tolist())
    assert hand.tolist() == deck[:7].tolist()


def test_label_slots(bolt):
    labels = label_slots([bolt.id, FILLER_ID, bolt.id], [bolt])
    assert labels == ["Lightning Bolt", "Other card", "Lightning Bolt"]


def test_scalar_and_batch_evaluators_agree(two_conditions, seeded_shuffler):
    deck = build_deck(two_conditions, 60)
    hands = seeded_shuffler.shuffle_many(deck, 500)[:, :9]
    for condition in two_conditions:
        batch = hands_satisfying(hands, condition)
        assert batch.tolist() == [satisfies(hand, condition) for hand in hands]
        assert copies_drawn(hands, condition).tolist() == [int((hand == condition.id).sum()) for hand in hands]


def test_count_successes_batches_add_up(bolt):
    deck = build_deck([bolt], 10)
    everything = Condition("Bolt", 4, 4, id=bolt.id)
    assert count_successes(deck, [everything], 10, "AND", 10_001, FastShuffler(2), batch_size=1000) == 10_001


def peak_memory(deck, conditions, trial_count):
    tracemalloc.start()
    try:
        estimate_probability(deck, conditions, 7, "AND", trial_count, shuffler=FastShuffler(4), cycles=1)
        return tracemalloc.get_traced_memory()[1]
    finally:
        tracemalloc.stop()


def test_memory_stays_flat_as_cycles_grow(bolt):
    deck = build_deck([bolt], 60)
    small = peak_memory(deck, [bolt], 4_000)
    large = peak_memory(deck, [bolt], 40_000)
    assert large < 2 * small, f"peak grew from {small} to {large} bytes"
