import numpy as np

from graphing import probability_curve
from probabilities import Condition


def test_curve_rises_to_certainty_with_the_whole_deck():
    draw_counts = np.arange(1, 11)
    curve = probability_curve([Condition("Bolt", 4, 1)], 10, draw_counts, "AND", 5000, seed=3)
    assert len(curve) == len(draw_counts)
    for fewer, more in zip(curve, curve[1:]):
        assert more >= fewer - 0.03
    assert curve[0] < 0.5
    assert curve[-1] == 1.0


def test_curve_reports_each_point():
    seen = []
    probability_curve([Condition("Bolt", 4, 2)], 40, [5, 6, 7], "OR", 500, seed=1, progress_sink=seen.append)
    assert seen == [5, 6, 7]
