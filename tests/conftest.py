"""Shared pytest fixtures."""

import pytest

from probabilities import Condition
from shufflers import FastShuffler


@pytest.fixture
def bolt():
    return Condition("Lightning Bolt", copies_in_deck=4, min_drawn=1)


@pytest.fixture
def two_conditions():
    return [
        Condition("Lightning Bolt", copies_in_deck=4, min_drawn=1),
        Condition("Mountain", copies_in_deck=20, min_drawn=2),
    ]


@pytest.fixture
def seeded_shuffler():
    return FastShuffler(seed=20240601)
