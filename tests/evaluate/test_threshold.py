import sys
import os
import decimal
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import seatlib.evaluate.threshold as th


def test_share_exact():
    assert th.vote_share_percent(2000, 10000) == 20
    assert th.vote_share_percent(1, 3) == Fraction(100, 3)
    assert th.vote_share_percent(5, 0) == 0


def test_share_rounded():
    assert th.vote_share_percent(1, 3, precision=2) == decimal.Decimal('33.33')
    assert th.vote_share_percent(2, 3, precision=2) == decimal.Decimal('66.67')
    assert th.vote_share_percent(19995, 100000, precision=2) == (
        decimal.Decimal('20.00')
    )


@pytest.mark.parametrize(('votes', 'total', 'percent', 'passes'), [
    (2000, 10000, 20, True),    # exactly at the threshold
    (1999, 10000, 20, False),
    (800, 10000, 10, False),
    (1001, 10000, 10, True),
    (0, 10000, 5, False),
    (0, 10000, 0, True),
    (0, 10000, None, True),
    (100, 0, 5, False),
    (525, 10000, decimal.Decimal('5.25'), True),
    (524, 10000, decimal.Decimal('5.25'), False),
])
def test_passes_exact(votes, total, percent, passes):
    assert th.passes_constituency_threshold(votes, total, percent) == passes
    assert th.passes_national_threshold(votes, total, percent) == passes


@pytest.mark.parametrize(('votes', 'total', 'percent', 'passes'), [
    (1050, 10000, Fraction(21, 2), True),
    (1049, 10000, Fraction(21, 2), False),
    (2, 3, Fraction(200, 3), True),
    (1000, 10000, 10.0, True),
    (510, 10000, 5.1, True),
    (509, 10000, 5.1, False),
])
def test_passes_any_number_type(votes, total, percent, passes):
    for precision in (None, 2):
        assert th.passes_national_threshold(
            votes, total, percent, precision=precision
        ) == passes
        assert th.passes_constituency_threshold(
            votes, total, percent, precision=precision
        ) == passes


def test_share_selector_fraction_rounded():
    votes = {'A': 1050, 'B': 8950}
    assert th.ShareThreshold(Fraction(21, 2), precision=2).evaluate(votes) == [
        'B', 'A'
    ]


def test_passes_rounded():
    # 19.995 % only reaches 20 % when rounded half-up to two decimals
    assert not th.passes_constituency_threshold(19995, 100000, 20)
    assert th.passes_constituency_threshold(19995, 100000, 20, precision=2)
    assert not th.passes_constituency_threshold(19994, 100000, 20, precision=2)
    assert th.passes_national_threshold(999995, 10000000, 10, precision=2)


def test_no_threshold_with_no_votes():
    assert th.passes_national_threshold(0, 0, None)


def test_share_selector():
    votes = {'A': 30, 'B': 50, 'C': 20, 'D': 0}
    assert th.ShareThreshold(25).evaluate(votes) == ['B', 'A']
    assert th.ShareThreshold(20).evaluate(votes) == ['B', 'A', 'C']
    assert th.ShareThreshold(20).evaluate(votes, total=200) == ['B']


def test_share_selector_rounded():
    votes = {'A': 19995, 'B': 80005}
    sel = th.ShareThreshold(20, precision=2)
    assert sel.evaluate(votes) == ['B', 'A']
    assert th.ShareThreshold(20).evaluate(votes) == ['B']
