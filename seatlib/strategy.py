'''Calculation strategies: complete apportionment methods for one election.

A strategy composes the components of an apportionment method - the
electoral quotient, the threshold rules, the largest remainder tie-break and
the gender quota substitution order - behind a single interface, so that the
orchestrator can apply any of them to an election. Strategies hold no state
that changes during a calculation, so one strategy object can be used for
many constituencies at once.

All strategies are assembled in the `STRATEGIES` register keyed by the name
used in election configuration. `get()` retrieves a strategy class from this
register by string key; :func:`create` also instantiates it.
'''

import abc
import logging
import dataclasses
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from numbers import Number

import seatlib.component.core
import seatlib.evaluate.threshold
from seatlib.evaluate.core import (
    IncompatibleStrategyError, MalformedVoteDataError,
    NoEligibleCandidacyError, QuotaUnmetWarning,
)
from seatlib.evaluate.proportional import LargestRemainder
from seatlib.evaluate.quota import GenderQuotaAllocator, seated_nominees
from seatlib.model import (
    DEFAULT_STRATEGY, Allocations, Candidacy, Constituency, Election,
    Identifier, NationalVoteResult, QuotaSubstitution, SeatAllocation,
    VoteResult,
)
from seatlib.persist import simple_serialization, scoped_class_name


STRATEGIES = seatlib.component.core.Register('strategy')

strategy_mark, get, construct = seatlib.component.core.register_functions(
    STRATEGIES
)


class CalculationStrategy(metaclass=abc.ABCMeta):
    '''An apportionment method applicable to whole elections.

    Subclasses set the class attributes below to choose their components;
    the base class implements the calculation itself.
    '''

    key: str = NotImplemented
    '''Name of the strategy in election configuration.'''

    name: str = NotImplemented
    '''Human readable name of the strategy, for audit logs.'''

    version: str = '1.0.0'

    supported_kinds: frozenset = frozenset(['legislative'])
    '''Kinds of elections the strategy can apportion.'''

    quotient_function: str = 'hare'
    tiebreak: str = 'identifier'

    threshold_precision: Optional[int] = None
    '''Decimal places to round vote shares to before comparing them with
    thresholds; None compares exactly.'''

    default_national_threshold: Optional[Number] = None
    default_constituency_threshold: Optional[Number] = None

    quota_constituency_order: str = 'seats'
    quota_candidacy_order: str = 'seats'

    legal_basis: Optional[str] = None

    def __init__(self):
        self._distributor = LargestRemainder(
            self.quotient_function, self.tiebreak
        )
        self._quota_allocator = GenderQuotaAllocator(
            self.quota_constituency_order, self.quota_candidacy_order
        )

    def get_name(self) -> str:
        return self.name

    def get_version(self) -> str:
        return self.version

    def get_metadata(self) -> Dict[str, Any]:
        '''Return the identity and setup of the strategy for audit logs.'''
        return {
            'key': self.key,
            'name': self.get_name(),
            'version': self.get_version(),
            'class': scoped_class_name(self),
            'quotient': self.quotient_function,
            'tiebreak': self.tiebreak,
            'threshold_precision': self.threshold_precision,
            'default_national_threshold': self.default_national_threshold,
            'default_constituency_threshold':
                self.default_constituency_threshold,
            'quota_order': [
                self.quota_constituency_order, self.quota_candidacy_order
            ],
            'legal_basis': self.legal_basis,
        }

    def check_applicable(self, election: Election) -> None:
        '''Raise an error if the strategy cannot apportion the election.

        :raises IncompatibleStrategyError: With the reason of the
            incompatibility.
        '''
        if election.kind not in self.supported_kinds:
            raise IncompatibleStrategyError(
                self.key,
                f'{election.kind} elections not supported, only '
                + ', '.join(sorted(self.supported_kinds))
            )
        if not election.constituencies:
            raise IncompatibleStrategyError(
                self.key, f'election {election.id} has no constituencies'
            )

    def can_apply(self, election: Election) -> bool:
        '''Return whether the strategy can apportion the election.'''
        try:
            self.check_applicable(election)
        except IncompatibleStrategyError as err:
            logging.info("%s", err)
            return False
        return True

    def national_threshold(self, election: Election) -> Optional[Number]:
        if election.national_threshold is not None:
            return election.national_threshold
        return self.default_national_threshold

    def constituency_threshold(self, election: Election) -> Optional[Number]:
        if election.constituency_threshold is not None:
            return election.constituency_threshold
        return self.default_constituency_threshold

    def calculate_quotient(self, total_expressed: int, n_seats: int) -> Number:
        '''Return the electoral quotient of a constituency.'''
        return self._distributor.quotient(total_expressed, n_seats)

    def passes_national_threshold(self,
                                  election: Election,
                                  result: NationalVoteResult,
                                  ) -> bool:
        '''Determine whether a list clears the election's national threshold.'''
        return seatlib.evaluate.threshold.passes_national_threshold(
            result.votes,
            result.expressed_total,
            self.national_threshold(election),
            precision=self.threshold_precision,
        )

    def passes_constituency_threshold(self,
                                      election: Election,
                                      result: VoteResult,
                                      ) -> bool:
        '''Determine whether a candidacy clears the constituency threshold.'''
        return seatlib.evaluate.threshold.passes_constituency_threshold(
            result.votes,
            result.expressed_total,
            self.constituency_threshold(election),
            precision=self.threshold_precision,
        )

    def is_eligible(self,
                    election: Election,
                    candidacy: Candidacy,
                    result: VoteResult,
                    ) -> bool:
        '''Determine whether a candidacy may obtain seats.

        A candidacy must have received votes and clear both thresholds
        that apply to the election.
        '''
        if result.votes == 0:
            return False
        national_results = election.national_results or {}
        national = national_results.get(
            candidacy.party_key,
            NationalVoteResult(candidacy.party_key, 0, 0)
        )
        return (
            self.passes_national_threshold(election, national)
            and self.passes_constituency_threshold(election, result)
        )

    def calculate_seats(self,
                        election: Election,
                        constituency: Constituency,
                        vote_results: Iterable[VoteResult],
                        ) -> Dict[Identifier, SeatAllocation]:
        '''Apportion the seats of a single constituency.

        :param election: The election the constituency belongs to.
        :param constituency: The constituency to apportion.
        :param vote_results: Results of all candidacies of the constituency.
        :returns: Seat allocations by candidacy, in registration order.
            Ineligible candidacies are included with no seats.
        :raises DivisionByZeroError: If the constituency has no seats.
        :raises MalformedVoteDataError: If the vote results are invalid.
        :raises NoEligibleCandidacyError: If no candidacy may obtain seats.
        '''
        results, total_expressed = validate_vote_results(
            constituency, vote_results
        )
        quotient = self.calculate_quotient(
            total_expressed, constituency.n_seats
        )
        logging.info(
            "%s: constituency %s, %d seats, %d expressed, quotient %s",
            self.name, constituency.id, constituency.n_seats,
            total_expressed, quotient
        )
        eligible = [
            cand.id for cand in constituency.candidacies
            if self.is_eligible(election, cand, results[cand.id])
        ]
        logging.info("%d of %d candidacies eligible in %s",
                     len(eligible), len(constituency.candidacies),
                     constituency.id)
        if not eligible:
            raise NoEligibleCandidacyError(constituency.id)
        allocations = self._distributor.evaluate(
            {cand.id: results[cand.id].votes
             for cand in constituency.candidacies},
            constituency.n_seats,
            total_expressed,
            eligible,
        )
        for cand in constituency.candidacies:
            alloc = allocations[cand.id]
            logging.debug("%s: %d votes, %d seats (%d at quotient)",
                          cand.id, alloc.votes, alloc.seats,
                          alloc.quotient_seats)
            allocations[cand.id] = _with_elected(alloc, cand)
        return allocations

    def apply_gender_quota(self,
                           election: Election,
                           allocations: Allocations,
                           ) -> Tuple[
                               Allocations,
                               List[QuotaSubstitution],
                               List[QuotaUnmetWarning],
                           ]:
        '''Hand seats over within lists until the gender quota is met.

        :param election: The election with its quota setup.
        :param allocations: Seat allocations of all constituencies.
        :returns: The adjusted allocations, the substitutions made and the
            warnings about an unmet quota.
        '''
        return self._quota_allocator.allocate(election, allocations)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}({self.key} {self.version})>'


def _with_elected(alloc: SeatAllocation,
                  candidacy: Candidacy,
                  ) -> SeatAllocation:
    elected = seated_nominees(candidacy, alloc.seats)
    if candidacy.nominees and len(elected) < alloc.seats:
        logging.warning("list %s too short to fill %d seats",
                        candidacy.id, alloc.seats)
    return dataclasses.replace(alloc, elected=elected)


def validate_vote_results(constituency: Constituency,
                          vote_results: Iterable[VoteResult],
                          ) -> Tuple[Dict[Identifier, VoteResult], int]:
    '''Check the vote results of a constituency for consistency.

    :returns: The results keyed by candidacy and the expressed suffrages
        total of the constituency.
    :raises MalformedVoteDataError: If a result is negative, duplicated,
        missing or belongs to another constituency, or if the results
        disagree on the expressed suffrages total.
    '''
    cty_id = constituency.id
    results = {}
    for result in vote_results:
        if result.candidacy_id in results:
            raise MalformedVoteDataError(
                f'duplicate result for candidacy {result.candidacy_id}', cty_id
            )
        if result.votes is None or result.expressed_total is None:
            raise MalformedVoteDataError(
                f'missing vote count for candidacy {result.candidacy_id}',
                cty_id
            )
        if result.votes < 0 or result.expressed_total < 0:
            raise MalformedVoteDataError(
                f'negative vote count for candidacy {result.candidacy_id}',
                cty_id
            )
        results[result.candidacy_id] = result
    cand_ids = [cand.id for cand in constituency.candidacies]
    unknown = [cand_id for cand_id in results if cand_id not in cand_ids]
    if unknown:
        raise MalformedVoteDataError(
            f'results for unknown candidacies {unknown}', cty_id
        )
    missing = [cand_id for cand_id in cand_ids if cand_id not in results]
    if missing:
        raise MalformedVoteDataError(
            f'no results for candidacies {missing}', cty_id
        )
    totals = {result.expressed_total for result in results.values()}
    if len(totals) > 1:
        raise MalformedVoteDataError(
            f'inconsistent expressed suffrages totals {sorted(totals)}', cty_id
        )
    total_expressed = totals.pop() if totals else 0
    n_votes = sum(result.votes for result in results.values())
    if n_votes > total_expressed:
        raise MalformedVoteDataError(
            f'{n_votes} votes exceed {total_expressed} expressed suffrages',
            cty_id
        )
    return results, total_expressed


@strategy_mark
@simple_serialization
class StandardStrategy(CalculationStrategy):
    '''Hare quotient and largest remainder with the configured thresholds.

    Eligibility requires clearing each threshold the election configures;
    an unconfigured threshold does not apply. Shares are compared exactly.
    Equal remainders go to the candidacy with more votes, then to the lower
    candidacy identifier. Gender quota substitutions start in the largest
    constituencies and, within them, in the lists with the most seats.
    '''
    key = 'standard'
    name = 'Standard Legislative Calculator'
    version = '1.0.0'
    legal_basis = 'Hare quotient, largest remainder'


@strategy_mark
@simple_serialization
class OfficialStrategy(CalculationStrategy):
    '''The variant applied in the official electoral commission count.

    It differs from :class:`StandardStrategy` in these rules:

    -   The quotient is rounded half-up to two decimal places.
    -   Vote shares are rounded to two decimal places before being compared
        with the thresholds.
    -   Statutory thresholds of 10 % nationwide and 20 % in the
        constituency apply unless the election sets its own.
    -   Equal remainders go to the candidacy with more votes, then to the
        candidacy registered first in the constituency.
    -   Gender quota substitutions visit constituencies by identifier and,
        within them, the lists by descending votes.

    It only applies when enabled by configuration.

    :param enabled: Whether the official variant was approved for use.
    '''
    key = 'official'
    name = 'Official Commission Calculator'
    version = '2.0.0'
    quotient_function = 'hare_decimal'
    tiebreak = 'registration'
    threshold_precision = 2
    default_national_threshold = 10
    default_constituency_threshold = 20
    quota_constituency_order = 'identifier'
    quota_candidacy_order = 'votes'
    legal_basis = 'Official electoral commission algorithms'

    def __init__(self, enabled: bool = False):
        super().__init__()
        self.enabled = enabled

    def check_applicable(self, election: Election) -> None:
        if not self.enabled:
            raise IncompatibleStrategyError(
                self.key, 'official calculator not enabled in configuration'
            )
        super().check_applicable(election)


def create(strategy: Union[str, CalculationStrategy, None] = None,
           **options) -> CalculationStrategy:
    '''Construct a strategy from its configured name.

    :param strategy: Name of the strategy in `STRATEGIES`, a strategy
        object to pass through, or None for the default strategy.
    :param options: Keyword arguments for the strategy constructor.
    '''
    if isinstance(strategy, CalculationStrategy):
        return strategy
    return construct(strategy or DEFAULT_STRATEGY)(**options)
