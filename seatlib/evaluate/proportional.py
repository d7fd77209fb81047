'''Largest remainder seat distribution within a constituency.

Each eligible candidacy is first awarded the number of seats according to the
number of times its votes fill the electoral quotient. The seats that remain
are then given one by one to the candidacies with the largest remainders of
votes. Ties between equal remainders are broken by a deterministic rule
chosen from the `TIEBREAKS` register, so that the same votes always give the
same result.
'''

import logging
from fractions import Fraction
from typing import Any, Callable, Collection, Dict, List, Tuple, Union
from numbers import Number

import seatlib.component.core
import seatlib.component.quotient
from seatlib.evaluate.core import InvalidQuotientError
from seatlib.model import Identifier, SeatAllocation
from seatlib.persist import simple_serialization


TIEBREAKS = seatlib.component.core.Register('tiebreak')

TieKey = Callable[[Identifier, Number, int, int], Tuple[Any, ...]]

tiebreak_mark, get_tiebreak, construct_tiebreak = (
    seatlib.component.core.register_functions(TIEBREAKS)
)


@tiebreak_mark
def identifier(cand: Identifier,
               remainder: Number,
               n_votes: int,
               position: int,
               ) -> Tuple[Any, ...]:
    '''Larger remainder first, then more votes, then lower identifier.'''
    return (-remainder, -n_votes, cand)


@tiebreak_mark
def registration(cand: Identifier,
                 remainder: Number,
                 n_votes: int,
                 position: int,
                 ) -> Tuple[Any, ...]:
    '''Larger remainder first, then more votes, then earlier registration.'''
    return (-remainder, -n_votes, position)


@simple_serialization
class LargestRemainder:
    '''Distribute seats proportionally, rounding by largest remainder.

    :param quotient_function: A callable producing the electoral quotient
        from the total number of expressed suffrages and number of seats.
        The common quotient functions can be referenced by string name from
        the :mod:`seatlib.component.quotient` module.
    :param tiebreak: A callable producing the ordering key of a candidacy
        for the remainder distribution, or its name in `TIEBREAKS`.
    '''
    def __init__(self,
                 quotient_function: Union[
                     str, Callable[[int, int], Number]
                 ] = 'hare',
                 tiebreak: Union[str, TieKey] = 'identifier',
                 ):
        self.quotient_function = seatlib.component.quotient.construct(
            quotient_function
        )
        self.tiebreak = construct_tiebreak(tiebreak)

    def quotient(self, total_expressed: int, n_seats: int) -> Number:
        return self.quotient_function(total_expressed, n_seats)

    def evaluate(self,
                 votes: Dict[Identifier, int],
                 n_seats: int,
                 total_expressed: int,
                 eligible: Collection[Identifier],
                 ) -> Dict[Identifier, SeatAllocation]:
        '''Distribute seats among eligible candidacies by largest remainder.

        :param votes: Votes by candidacy, in the order of registration.
        :param n_seats: Number of seats to be filled.
        :param total_expressed: Total expressed suffrages in the constituency
            (including votes for ineligible candidacies), used to compute
            the quotient.
        :param eligible: Candidacies that may obtain seats. Other candidacies
            are reported with no seats.
        :returns: Seat allocations by candidacy, in the order of the votes.
        :raises InvalidQuotientError: If the quotient is zero or awards more
            seats at full quotients than there are to fill.
        '''
        quotient = Fraction(self.quotient(total_expressed, n_seats))
        if quotient == 0:
            raise InvalidQuotientError(quotient, n_seats)
        quotient_seats = {}
        remainders = {}
        for cand, n_votes in votes.items():
            if cand in eligible:
                quotient_seats[cand] = int(Fraction(n_votes) / quotient)
                remainders[cand] = n_votes - quotient_seats[cand] * quotient
        n_remaining = n_seats - sum(quotient_seats.values())
        if n_remaining < 0:
            raise InvalidQuotientError(quotient, n_seats)
        logging.info(
            "quotient %s awards %d seats, %d left for remainders",
            quotient, n_seats - n_remaining, n_remaining
        )
        extra_seats = self._distribute_remainders(
            votes, remainders, n_remaining
        )
        result = {}
        for cand, n_votes in votes.items():
            if cand in quotient_seats:
                result[cand] = SeatAllocation(
                    candidacy_id=cand,
                    votes=n_votes,
                    seats=quotient_seats[cand] + extra_seats.get(cand, 0),
                    quotient_seats=quotient_seats[cand],
                    remainder=remainders[cand],
                    eligible=True,
                )
            else:
                result[cand] = SeatAllocation(
                    candidacy_id=cand, votes=n_votes, eligible=False,
                )
        return result

    def _distribute_remainders(self,
                               votes: Dict[Identifier, int],
                               remainders: Dict[Identifier, Number],
                               n_remaining: int,
                               ) -> Dict[Identifier, int]:
        ranking = self.rank(votes, remainders)
        extra = {}
        # more seats than candidacies left: go around the ranking again
        while n_remaining > 0 and ranking:
            for cand in ranking[:n_remaining]:
                logging.debug("remainder seat to %s (%s)",
                              cand, remainders[cand])
                extra[cand] = extra.get(cand, 0) + 1
            n_remaining -= min(n_remaining, len(ranking))
        return extra

    def rank(self,
             votes: Dict[Identifier, int],
             remainders: Dict[Identifier, Number],
             ) -> List[Identifier]:
        '''Order candidacies for the remainder seats, best first.'''
        positions = {cand: i for i, cand in enumerate(votes)}
        return sorted(remainders, key=lambda cand: self.tiebreak(
            cand, remainders[cand], votes[cand], positions[cand]
        ))
