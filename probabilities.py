from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from itertools import count

import numpy as np

from config import (
    COMPANION_EXTRA_CARDS,
    CONSTRUCTED_DECK_SIZE,
    DEFAULT_COPIES_IN_DECK,
    DEFAULT_MIN_DRAWN,
    DEFAULT_TRIAL_COUNT,
    FILLER_LABEL,
    LIMITED_DECK_SIZE,
    SIMULATION_CYCLES,
    TRIALS_PER_CYCLE,
    console,
)
from errors import InvalidConfiguration, SimulationAborted
from shufflers import FastShuffler, StrongShuffler

FILLER_ID = 0

_group_ids = count(1)


class CombineMode(str, Enum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class Condition:
    """At least ``min_drawn`` of the ``copies_in_deck`` cards named ``name`` in hand."""

    name: str = ""
    copies_in_deck: int = DEFAULT_COPIES_IN_DECK
    min_drawn: int = DEFAULT_MIN_DRAWN
    id: int = field(default_factory=lambda: next(_group_ids))

    def __post_init__(self):
        if self.id == FILLER_ID:
            raise InvalidConfiguration(f"Card group id {FILLER_ID} is reserved for filler slots")
        if self.copies_in_deck < 1:
            raise InvalidConfiguration(f"{self.label}: copies in deck must be at least 1, got {self.copies_in_deck}")
        if self.min_drawn < 1:
            raise InvalidConfiguration(f"{self.label}: minimum drawn must be at least 1, got {self.min_drawn}")
        if self.min_drawn > self.copies_in_deck:
            raise InvalidConfiguration(
                f"{self.label}: cannot require {self.min_drawn} copies with only {self.copies_in_deck} in the deck"
            )

    @property
    def label(self):
        return self.name.strip() or f"Card group #{self.id}"

    @property
    def is_simple(self):
        return self.min_drawn == 1 and bool(self.name.strip())


@dataclass(frozen=True)
class SimulationResult:
    success_count: int
    total_trials: int

    @property
    def probability(self):
        return self.success_count / self.total_trials


def deck_size_for(constructed=True, companion=False):
    size = CONSTRUCTED_DECK_SIZE if constructed else LIMITED_DECK_SIZE
    if companion:
        size += COMPANION_EXTRA_CARDS
    return size


def build_deck(conditions, deck_size):
    """One slot per copy of every condition, in list order, padded with filler."""
    if deck_size <= 0:
        raise InvalidConfiguration(f"Deck size must be positive, got {deck_size}")
    ids = [condition.id for condition in conditions]
    if len(set(ids)) != len(ids):
        raise InvalidConfiguration("Two conditions share the same card group id")

    total = sum(condition.copies_in_deck for condition in conditions)
    if total > deck_size:
        raise InvalidConfiguration(f"Conditions need {total} cards but the deck only holds {deck_size}")

    slots = [condition.id for condition in conditions for _ in range(condition.copies_in_deck)]
    slots.extend([FILLER_ID] * (deck_size - total))
    return np.array(slots, dtype=np.int64)


def copies_drawn(hands, condition):
    return np.count_nonzero(np.asarray(hands) == condition.id, axis=-1)


def satisfies(hand, condition):
    return bool(copies_drawn(hand, condition) >= condition.min_drawn)


def hands_satisfying(hands, condition):
    return copies_drawn(hands, condition) >= condition.min_drawn


def combine(results, combine_mode):
    match CombineMode(combine_mode):
        case CombineMode.AND:
            return np.logical_and.reduce(results)
        case CombineMode.OR:
            return np.logical_or.reduce(results)


def run_trial(deck, conditions, draw_count, combine_mode, shuffler):
    hand = shuffler.shuffle(deck)[:draw_count]
    return bool(combine([satisfies(hand, condition) for condition in conditions], combine_mode))


def count_successes(deck, conditions, draw_count, combine_mode, trials, shuffler, batch_size=TRIALS_PER_CYCLE):
    # memory stays bounded by batch_size x deck length whatever the trial count
    successes = 0
    for start in range(0, trials, batch_size):
        hands = shuffler.shuffle_many(deck, min(batch_size, trials - start))[:, :draw_count]
        results = [hands_satisfying(hands, condition) for condition in conditions]
        successes += int(np.count_nonzero(combine(results, combine_mode)))
    return successes


def validate_run(conditions, draw_count, combine_mode, trial_count, cycles):
    if not conditions:
        raise InvalidConfiguration("At least one condition is required")
    if draw_count <= 0:
        raise InvalidConfiguration(f"Cards drawn must be positive, got {draw_count}")
    if trial_count <= 0:
        raise InvalidConfiguration(f"Trial count must be positive, got {trial_count}")
    if cycles <= 0:
        raise InvalidConfiguration(f"Cycle count must be positive, got {cycles}")
    try:
        return CombineMode(combine_mode)
    except ValueError:
        raise InvalidConfiguration(f"Unknown combine mode: {combine_mode!r}") from None


def cycle_sizes(trial_count, cycles):
    cycles = min(cycles, trial_count)
    base, extra = divmod(trial_count, cycles)
    return [base + 1 if i < extra else base for i in range(cycles)]


def estimate_probability(deck, conditions, draw_count, combine_mode, trial_count=DEFAULT_TRIAL_COUNT,
                         progress_sink=None, *, shuffler=None, cycles=SIMULATION_CYCLES, workers=None,
                         cancel_event=None, debug=False):
    """Monte Carlo estimate of P(hand satisfies the combined conditions).

    ``progress_sink(completed_trials, trial_count)`` is called from this thread
    after every cycle. Setting ``cancel_event`` stops the run at the next cycle
    boundary with :class:`SimulationAborted`.
    """
    combine_mode = validate_run(conditions, draw_count, combine_mode, trial_count, cycles)
    deck = np.asarray(deck)
    shuffler = shuffler or FastShuffler()
    sizes = cycle_sizes(trial_count, cycles)
    cycle_shufflers = shuffler.spawn(len(sizes))

    if debug:
        console.print(f"[info]{len(deck)} card deck, {len(conditions)} condition(s) combined with {combine_mode.value}, "
                      f"{draw_count} drawn[/info]")
        console.print(f"[info]{trial_count} trials in {len(sizes)} cycles using the {shuffler.name} shuffler"
                      f"{f' on {workers} workers' if workers and workers > 1 else ''}[/info]")

    def check_cancelled(completed):
        if cancel_event is not None and cancel_event.is_set():
            raise SimulationAborted(f"Simulation cancelled after {completed} of {trial_count} trials")

    def run_cycle(size, cycle_shuffler):
        check_cancelled(completed)
        return count_successes(deck, conditions, draw_count, combine_mode, size, cycle_shuffler)

    successes = 0
    completed = 0
    if workers and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(run_cycle, size, cycle_shuffler): size
                for size, cycle_shuffler in zip(sizes, cycle_shufflers)
            }
            try:
                for future in as_completed(futures):
                    successes += future.result()
                    completed += futures[future]
                    if completed < trial_count:
                        check_cancelled(completed)
                    if progress_sink is not None:
                        progress_sink(completed, trial_count)
            except SimulationAborted:
                for future in futures:
                    future.cancel()
                raise
    else:
        for size, cycle_shuffler in zip(sizes, cycle_shufflers):
            successes += run_cycle(size, cycle_shuffler)
            completed += size
            if progress_sink is not None:
                progress_sink(completed, trial_count)

    result = SimulationResult(successes, trial_count)
    if debug:
        console.print(f"[info]{successes} of {trial_count} trials succeeded ({result.probability:.4%})[/info]")
    return result


def simulate_conditions(conditions, deck_size, draw_count, combine_mode, trial_count=DEFAULT_TRIAL_COUNT,
                        progress_sink=None, **kwargs):
    deck = build_deck(conditions, deck_size)
    return estimate_probability(deck, conditions, draw_count, combine_mode, trial_count, progress_sink, **kwargs)


def draw_sample_hand(conditions, deck_size, draw_count, shuffler=None):
    if draw_count < 0:
        raise InvalidConfiguration(f"Cards drawn cannot be negative, got {draw_count}")
    deck = (shuffler or StrongShuffler()).shuffle(build_deck(conditions, deck_size))
    return deck, deck[:draw_count]


def label_slots(slots, conditions):
    names = {condition.id: condition.label for condition in conditions}
    return [names.get(int(slot), FILLER_LABEL) for slot in slots]
