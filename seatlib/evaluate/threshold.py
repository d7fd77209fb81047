'''Electoral threshold predicates and selectors.

A candidacy is only eligible for seats if its share of expressed suffrages
reaches the configured minimum, either nationwide (for the whole list it
belongs to) or within its constituency. Which of the thresholds apply is
decided by the calculation strategy; the functions here only evaluate one
threshold at a time.

Shares are compared exactly, as fractions, and a share exactly at the
threshold passes it. Optionally, the percentage can be rounded to a given
number of decimal places first, as done in official count reports.
'''

import decimal
from fractions import Fraction
from typing import Dict, List, Optional
from numbers import Number

from seatlib.model import Identifier
from seatlib.persist import simple_serialization


def vote_share_percent(votes: int,
                       total: int,
                       precision: Optional[int] = None,
                       ) -> Number:
    '''Return the percentage of total votes obtained.

    :param votes: Votes obtained.
    :param total: Total expressed suffrages.
    :param precision: If given, round the percentage half-up to this many
        decimal places and return it as a Decimal; otherwise, return an
        exact fraction.
    '''
    if total == 0:
        return 0
    share = Fraction(votes * 100, total)
    if precision is None:
        return share
    with decimal.localcontext() as context:
        context.rounding = decimal.ROUND_HALF_UP
        exact = decimal.Decimal(share.numerator) / share.denominator
        return exact.quantize(decimal.Decimal(1).scaleb(-precision))


def _passes(votes: int,
            total: int,
            percent: Optional[Number],
            precision: Optional[int],
            ) -> bool:
    if percent is None:
        return True
    if total == 0:
        return False
    share = vote_share_percent(votes, total, precision)
    return Fraction(share) >= _exact_percent(percent)


def _exact_percent(percent: Number) -> Fraction:
    # floats as written, not their binary expansion (5.1 is 51/10)
    if isinstance(percent, float):
        return Fraction(str(percent))
    return Fraction(percent)


def passes_national_threshold(votes: int,
                              national_total: int,
                              percent: Optional[Number],
                              precision: Optional[int] = None,
                              ) -> bool:
    '''Determine whether a list clears the national threshold.

    :param votes: Votes obtained by the list nationwide.
    :param national_total: Total expressed suffrages in the election.
    :param percent: The threshold as a percentage; None for no threshold.
    :param precision: Number of decimal places to round the share to before
        comparing; None for an exact comparison.
    '''
    return _passes(votes, national_total, percent, precision)


def passes_constituency_threshold(votes: int,
                                  constituency_total: int,
                                  percent: Optional[Number],
                                  precision: Optional[int] = None,
                                  ) -> bool:
    '''Determine whether a candidacy clears the constituency threshold.

    :param votes: Votes obtained by the candidacy in its constituency.
    :param constituency_total: Total expressed suffrages in the constituency.
    :param percent: The threshold as a percentage; None for no threshold.
    :param precision: Number of decimal places to round the share to before
        comparing; None for an exact comparison.
    '''
    return _passes(votes, constituency_total, percent, precision)


@simple_serialization
class ShareThreshold:
    '''Relative threshold seatless selector.

    Selects all candidacies whose votes reach the given percentage of the
    total expressed suffrages. Useful to list the candidacies passing
    a threshold in one go, e.g. for reporting.

    :param percent: The threshold as a percentage of expressed suffrages.
    :param precision: Number of decimal places to round the shares to before
        comparing; None for an exact comparison.
    '''
    def __init__(self,
                 percent: Number,
                 precision: Optional[int] = None,
                 ):
        self.percent = percent
        self.precision = precision

    def evaluate(self,
                 votes: Dict[Identifier, int],
                 total: Optional[int] = None,
                 ) -> List[Identifier]:
        '''Select candidacies by the threshold, most voted first.

        :param votes: Votes by candidacy.
        :param total: Total expressed suffrages; defaults to the sum of votes.
        '''
        if total is None:
            total = sum(votes.values())
        return [
            cand for cand, n_votes in sorted(
                votes.items(), key=lambda item: item[1], reverse=True
            )
            if _passes(n_votes, total, self.percent, self.precision)
        ]
