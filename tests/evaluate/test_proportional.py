import sys
import os
import decimal
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import seatlib.evaluate.core
import seatlib.evaluate.proportional
from seatlib.evaluate.proportional import LargestRemainder


def seats(allocations):
    return {cand: alloc.seats for cand, alloc in allocations.items()}


def test_hare_basic():
    votes = {'A': 4500, 'B': 3500, 'C': 2000}
    result = LargestRemainder().evaluate(votes, 5, 10000, list(votes))
    assert seats(result) == {'A': 2, 'B': 2, 'C': 1}
    assert result['A'].quotient_seats == 2
    assert result['A'].remainder == 500
    assert result['B'].quotient_seats == 1
    assert result['B'].remainder == 1500
    assert result['C'].remainder == 0


def test_ineligible_excluded():
    votes = {'A': 4500, 'B': 3500, 'C': 2000}
    result = LargestRemainder().evaluate(votes, 5, 10000, ['A', 'B'])
    assert seats(result) == {'A': 3, 'B': 2, 'C': 0}
    assert not result['C'].eligible
    assert result['C'].votes == 2000
    assert result['A'].eligible


def test_result_order():
    votes = {'C': 2000, 'A': 4500, 'B': 3500}
    result = LargestRemainder().evaluate(votes, 5, 10000, list(votes))
    assert list(result) == ['C', 'A', 'B']


@pytest.mark.parametrize(('tiebreak', 'winner'), [
    ('identifier', 'A'),
    ('registration', 'B'),
])
def test_tiebreak_equal_remainders(tiebreak, winner):
    votes = {'B': 100, 'A': 100}
    result = LargestRemainder(tiebreak=tiebreak).evaluate(
        votes, 1, 200, list(votes)
    )
    assert result[winner].seats == 1
    assert sum(seats(result).values()) == 1


def test_tiebreak_by_votes():
    # equal remainders of 100, the larger list wins
    votes = {'A': 100, 'B': 500}
    result = LargestRemainder().evaluate(votes, 2, 800, list(votes))
    assert seats(result) == {'A': 0, 'B': 2}
    assert result['A'].remainder == result['B'].remainder == 100


def test_remainder_cycling():
    votes = {'A': 10, 'B': 90}
    result = LargestRemainder().evaluate(votes, 3, 100, ['A'])
    assert seats(result) == {'A': 3, 'B': 0}


def test_conservation():
    votes = {'A': 3001, 'B': 2999, 'C': 1234, 'D': 777, 'E': 12}
    total = sum(votes.values()) + 500
    for n_seats in range(1, 30):
        for tiebreak in seatlib.evaluate.proportional.TIEBREAKS:
            result = LargestRemainder(tiebreak=tiebreak).evaluate(
                votes, n_seats, total, ['A', 'B', 'C', 'D']
            )
            assert sum(seats(result).values()) == n_seats
            assert result['E'].seats == 0


def test_decimal_quotient():
    votes = {'A': 3334, 'B': 3333, 'C': 3333}
    distributor = LargestRemainder(quotient_function='hare_decimal')
    assert distributor.quotient(10000, 3) == decimal.Decimal('3333.33')
    result = distributor.evaluate(votes, 3, 10000, list(votes))
    assert seats(result) == {'A': 1, 'B': 1, 'C': 1}
    assert result['A'].remainder == Fraction('0.67')


def test_zero_quotient():
    with pytest.raises(seatlib.evaluate.core.InvalidQuotientError):
        LargestRemainder().evaluate({'A': 0}, 2, 0, ['A'])


def test_overshooting_quotient():
    def tiny(n_votes, n_seats):
        return Fraction(n_votes, n_seats * 2)
    with pytest.raises(seatlib.evaluate.core.InvalidQuotientError):
        LargestRemainder(quotient_function=tiny).evaluate(
            {'A': 60, 'B': 40}, 5, 100, ['A', 'B']
        )


def test_rank():
    distributor = LargestRemainder()
    votes = {'A': 10, 'B': 20, 'C': 30}
    assert distributor.rank(votes, {'A': 5, 'B': 5, 'C': 1}) == ['B', 'A', 'C']


def test_tiebreak_register():
    assert (
        seatlib.evaluate.proportional.get_tiebreak('identifier')
        == seatlib.evaluate.proportional.identifier
    )
    with pytest.raises(KeyError):
        seatlib.evaluate.proportional.get_tiebreak('coin')
