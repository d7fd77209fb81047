'''Election snapshots handed to the engine and the records it produces.

The input objects (:class:`Election`, :class:`Constituency`,
:class:`Candidacy`, :class:`Nominee`, :class:`VoteResult`,
:class:`NationalVoteResult`) are immutable snapshots created by the
surrounding application; the engine only reads them. The output objects
(:class:`SeatAllocation`, :class:`QuotaSubstitution`,
:class:`ElectionResult`) are created fresh on every calculation run.

Identifiers of constituencies and candidacies can be any hashable, mutually
comparable values (usually integers or strings); they are used to fix the
order of processing and to break ties deterministically.
'''

from __future__ import annotations

import dataclasses
import datetime
from numbers import Number
from typing import Any, Dict, List, Optional, Tuple

import seatlib.persist
from seatlib.evaluate.core import QuotaUnmetWarning


Identifier = Any

DEFAULT_STRATEGY = 'standard'
'''Name of the strategy used when the election does not configure one.'''


@dataclasses.dataclass(frozen=True)
class Nominee:
    '''A person on a candidacy list.

    :param name: Name of the person, in any customary text format.
    :param gender: Declared gender, as a short code (e.g. ``F``, ``M``).
    :param withdrawn: Whether the person withdrew and cannot be seated.
    '''
    name: str
    gender: str
    withdrawn: bool = False


@dataclasses.dataclass(frozen=True)
class Candidacy:
    '''A list standing for election in one constituency.

    :param id: Identifier of the candidacy.
    :param nominees: Persons on the list, in the order of seating priority.
    :param party: Key of the nationwide list the candidacy belongs to, used
        to look up its national vote result. Defaults to the candidacy
        identifier.
    '''
    id: Identifier
    nominees: Tuple[Nominee, ...] = ()
    party: Optional[Identifier] = None

    @property
    def party_key(self) -> Identifier:
        return self.id if self.party is None else self.party


@dataclasses.dataclass(frozen=True)
class Constituency:
    '''An electoral constituency of an election.

    :param id: Identifier of the constituency.
    :param n_seats: Number of seats to fill in the constituency.
    :param candidacies: Candidacies standing in the constituency, in the
        order of their registration.
    '''
    id: Identifier
    n_seats: int
    candidacies: Tuple[Candidacy, ...] = ()

    def get_candidacy(self, candidacy_id: Identifier) -> Candidacy:
        for candidacy in self.candidacies:
            if candidacy.id == candidacy_id:
                return candidacy
        raise KeyError(f'no candidacy {candidacy_id} in constituency {self.id}')


@dataclasses.dataclass(frozen=True)
class VoteResult:
    '''Votes received by a candidacy in its constituency.

    :param candidacy_id: Identifier of the candidacy.
    :param votes: Number of votes obtained by the candidacy.
    :param expressed_total: Total expressed suffrages in the constituency.
    '''
    candidacy_id: Identifier
    votes: int
    expressed_total: int


@dataclasses.dataclass(frozen=True)
class NationalVoteResult:
    '''Votes received by a nationwide list across the whole election.

    :param party: Key of the nationwide list.
    :param votes: Number of votes obtained nationwide.
    :param expressed_total: Total expressed suffrages in the election.
    '''
    party: Identifier
    votes: int
    expressed_total: int


@dataclasses.dataclass(frozen=True)
class Election:
    '''An election to be apportioned.

    :param id: Identifier of the election.
    :param kind: Kind of the election, such as ``legislative`` or
        ``presidential``; strategies declare which kinds they support.
    :param constituencies: The constituencies of the election.
    :param strategy: Configured name of the calculation strategy.
    :param national_threshold: Minimum percentage of nationwide expressed
        suffrages a list needs to be eligible for seats, if any.
    :param constituency_threshold: Minimum percentage of the constituency's
        expressed suffrages a candidacy needs to be eligible, if any.
    :param gender_quota: Minimum percentage of all seats to be held by the
        quota gender, if any.
    :param quota_gender: The gender targeted by the quota.
    :param national_results: Nationwide results by list key. If not given,
        the orchestrator aggregates them from the constituency results.
    '''
    id: Identifier
    kind: str = 'legislative'
    constituencies: Tuple[Constituency, ...] = ()
    strategy: Optional[str] = None
    national_threshold: Optional[Number] = None
    constituency_threshold: Optional[Number] = None
    gender_quota: Optional[Number] = None
    quota_gender: str = 'F'
    national_results: Optional[Dict[Identifier, NationalVoteResult]] = (
        dataclasses.field(default=None, hash=False)
    )

    @property
    def n_seats(self) -> int:
        return sum(cty.n_seats for cty in self.constituencies)

    @property
    def strategy_name(self) -> str:
        return self.strategy or DEFAULT_STRATEGY

    def sorted_constituencies(self) -> List[Constituency]:
        return sorted(self.constituencies, key=lambda cty: cty.id)

    def get_constituency(self, constituency_id: Identifier) -> Constituency:
        for constituency in self.constituencies:
            if constituency.id == constituency_id:
                return constituency
        raise KeyError(f'no constituency {constituency_id} in {self.id}')


@dataclasses.dataclass(frozen=True)
class SeatAllocation:
    '''Seats allocated to a single candidacy in its constituency.

    :param candidacy_id: Identifier of the candidacy.
    :param votes: Votes obtained by the candidacy.
    :param seats: Total number of seats obtained.
    :param quotient_seats: Seats obtained by full quotients, before the
        remainder distribution.
    :param remainder: Votes left over after the quotient seats, as used when
        distributing the remaining seats.
    :param eligible: Whether the candidacy passed the applicable thresholds.
    :param elected: Nominees holding the seats, in seat order: list order
        until a gender quota substitute takes over the seat it replaced.
    '''
    candidacy_id: Identifier
    votes: int
    seats: int = 0
    quotient_seats: int = 0
    remainder: Number = 0
    eligible: bool = True
    elected: Tuple[Nominee, ...] = ()


@dataclasses.dataclass(frozen=True)
class QuotaSubstitution:
    '''A seat handed over to a same-list alternate to meet the gender quota.

    :param constituency_id: Constituency of the seat.
    :param candidacy_id: Candidacy (list) holding the seat.
    :param position: Index of the seat among the list's seated nominees.
    :param replaced: The nominee who lost the seat.
    :param substitute: The alternate who took the seat.
    '''
    constituency_id: Identifier
    candidacy_id: Identifier
    position: int
    replaced: Nominee
    substitute: Nominee


Allocations = Dict[Identifier, Dict[Identifier, SeatAllocation]]


@dataclasses.dataclass
class ElectionResult:
    '''The apportionment of a whole election.

    :param election_id: Identifier of the election.
    :param allocations: Seat allocations by constituency and candidacy.
    :param quotients: The electoral quotient used in each constituency.
    :param substitutions: Audit trail of the gender quota substitutions.
    :param warnings: Non-fatal problems found during the calculation.
    :param strategy: Metadata of the strategy that produced the result.
    :param calculated_at: When the calculation finished; not compared.
    '''
    election_id: Identifier
    allocations: Allocations
    quotients: Dict[Identifier, Number] = dataclasses.field(
        default_factory=dict
    )
    substitutions: List[QuotaSubstitution] = dataclasses.field(
        default_factory=list
    )
    warnings: List[QuotaUnmetWarning] = dataclasses.field(
        default_factory=list
    )
    strategy: Dict[str, Any] = dataclasses.field(default_factory=dict)
    calculated_at: Optional[datetime.datetime] = dataclasses.field(
        default=None, compare=False
    )

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def seats(self) -> Dict[Identifier, Dict[Identifier, int]]:
        '''Return the numbers of seats by constituency and candidacy.'''
        return {
            cty_id: {
                cand_id: alloc.seats for cand_id, alloc in cty_allocs.items()
            }
            for cty_id, cty_allocs in self.allocations.items()
        }

    def constituency_seats(self) -> Dict[Identifier, int]:
        '''Return the total numbers of seats distributed by constituency.'''
        return {
            cty_id: sum(alloc.seats for alloc in cty_allocs.values())
            for cty_id, cty_allocs in self.allocations.items()
        }

    def total_seats(self) -> int:
        return sum(self.constituency_seats().values())

    def seats_by_gender(self) -> Dict[str, int]:
        '''Count the seated nominees by their declared gender.'''
        counts = {}
        for cty_allocs in self.allocations.values():
            for alloc in cty_allocs.values():
                for nominee in alloc.elected:
                    counts[nominee.gender] = counts.get(nominee.gender, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        out = {
            field.name: seatlib.persist.serialize_value(
                getattr(self, field.name)
            )
            for field in dataclasses.fields(self)
            if field.compare
        }
        if self.calculated_at is not None:
            out['calculated_at'] = self.calculated_at.isoformat()
        return out

