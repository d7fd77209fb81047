'''Gender quota enforcement by same-list substitution.

After all constituencies are apportioned, the seats of each candidacy go to
the first nominees on its list. If the nominees of the quota gender then hold
fewer seats than the quota requires nationwide, seats are handed over within
the lists: the lowest placed seated nominee of another gender is replaced by
the next unseated nominee of the quota gender from the same list.

The number of seats of every candidacy (and hence of every constituency)
stays the same; only the persons holding them change. Each substitution is
recorded for the audit trail. When no list has a suitable alternate left,
the quota is reported as unmet by a :class:`QuotaUnmetWarning` in the result.
'''

import math
import logging
import dataclasses
from fractions import Fraction
from typing import Any, Callable, Dict, List, Optional, Tuple

from seatlib.evaluate.core import QuotaUnmetWarning
from seatlib.model import (
    Allocations, Candidacy, Constituency, Election, Nominee,
    QuotaSubstitution, SeatAllocation,
)
from seatlib.persist import simple_serialization


CONSTITUENCY_ORDERS: Dict[str, Callable[[Constituency], Any]] = {
    'seats': lambda cty: (-cty.n_seats, cty.id),
    'identifier': lambda cty: cty.id,
}

CANDIDACY_ORDERS: Dict[str, Callable[[SeatAllocation, int], Any]] = {
    'seats': lambda alloc, position: (-alloc.seats, alloc.candidacy_id),
    'votes': lambda alloc, position: (-alloc.votes, position),
}


def seated_positions(candidacy: Candidacy, n_seats: int) -> List[int]:
    '''Return list positions of the nominees taking the candidacy's seats.

    These are the first *n_seats* nominees that have not withdrawn. If the
    list is too short, fewer positions are returned.
    '''
    positions = [
        i for i, nominee in enumerate(candidacy.nominees)
        if not nominee.withdrawn
    ]
    return positions[:n_seats]


def seated_nominees(candidacy: Candidacy, n_seats: int) -> Tuple[Nominee, ...]:
    return tuple(
        candidacy.nominees[i] for i in seated_positions(candidacy, n_seats)
    )


def required_seats(n_seats: int, percent: Any) -> int:
    '''Return the minimum number of seats the quota reserves.'''
    return int(math.ceil(n_seats * Fraction(str(percent)) / 100))


@simple_serialization
class GenderQuotaAllocator:
    '''Enforce a minimum share of seats for one gender across an election.

    :param constituency_order: Name of the order in which constituencies
        are visited, from `CONSTITUENCY_ORDERS`: ``seats`` (largest
        constituencies first, then by identifier) or ``identifier``.
    :param candidacy_order: Name of the order in which the candidacies of a
        constituency are tried, from `CANDIDACY_ORDERS`: ``seats`` (most
        seats first, then by identifier) or ``votes`` (most votes first,
        then by registration).
    '''
    def __init__(self,
                 constituency_order: str = 'seats',
                 candidacy_order: str = 'seats',
                 ):
        if constituency_order not in CONSTITUENCY_ORDERS:
            raise ValueError(f'unknown constituency order: {constituency_order}')
        if candidacy_order not in CANDIDACY_ORDERS:
            raise ValueError(f'unknown candidacy order: {candidacy_order}')
        self.constituency_order = constituency_order
        self.candidacy_order = candidacy_order

    def allocate(self,
                 election: Election,
                 allocations: Allocations,
                 ) -> Tuple[
                     Allocations, List[QuotaSubstitution], List[QuotaUnmetWarning]
                 ]:
        '''Substitute seat holders until the gender quota is met.

        :param election: The election, providing the quota setup and the
            candidacy lists.
        :param allocations: Initial seat allocations by constituency and
            candidacy.
        :returns: A tuple of the adjusted allocations, the substitutions made
            and the warnings raised (at most one, if the quota is unmet).
        '''
        if election.gender_quota is None:
            return allocations, [], []
        gender = election.quota_gender
        n_seats = sum(
            alloc.seats
            for cty_allocs in allocations.values()
            for alloc in cty_allocs.values()
        )
        required = required_seats(n_seats, election.gender_quota)
        seated = self._initial_seating(election, allocations)
        obtained = sum(
            1 for (cty_id, cand_id), positions in seated.items()
            for i in positions
            if self._nominee(election, cty_id, cand_id, i).gender == gender
        )
        logging.info("gender quota requires %d seats for %s, %d held",
                     required, gender, obtained)
        substitutions = []
        visit_order = self._visit_order(election, allocations)
        while obtained < required:
            progress = False
            for cty_id, cand_ids in visit_order:
                for cand_id in cand_ids:
                    subst = self._substitute(
                        election, cty_id, cand_id, seated, gender
                    )
                    if subst:
                        logging.info(
                            "seat %d of %s in %s: %s replaced by %s",
                            subst.position, cand_id, cty_id,
                            subst.replaced.name, subst.substitute.name
                        )
                        substitutions.append(subst)
                        obtained += 1
                        progress = True
                        break
                if obtained >= required:
                    break
            if not progress:
                break
        warnings = []
        if obtained < required:
            warning = QuotaUnmetWarning(gender, required, obtained)
            logging.warning("%s", warning)
            warnings.append(warning)
        return (
            self._adjusted(election, allocations, seated),
            substitutions,
            warnings,
        )

    def _initial_seating(self,
                         election: Election,
                         allocations: Allocations,
                         ) -> Dict[Tuple[Any, Any], List[int]]:
        seated = {}
        for cty_id, cty_allocs in allocations.items():
            constituency = election.get_constituency(cty_id)
            for cand_id, alloc in cty_allocs.items():
                if alloc.seats > 0:
                    seated[cty_id, cand_id] = seated_positions(
                        constituency.get_candidacy(cand_id), alloc.seats
                    )
        return seated

    def _visit_order(self,
                     election: Election,
                     allocations: Allocations,
                     ) -> List[Tuple[Any, List[Any]]]:
        cty_key = CONSTITUENCY_ORDERS[self.constituency_order]
        cand_key = CANDIDACY_ORDERS[self.candidacy_order]
        order = []
        for constituency in sorted(
            (election.get_constituency(cty_id) for cty_id in allocations),
            key=cty_key
        ):
            positions = {
                cand.id: i for i, cand in enumerate(constituency.candidacies)
            }
            cty_allocs = allocations[constituency.id]
            order.append((constituency.id, [
                alloc.candidacy_id for alloc in sorted(
                    (alloc for alloc in cty_allocs.values() if alloc.seats),
                    key=lambda alloc: cand_key(
                        alloc, positions.get(alloc.candidacy_id, 0)
                    )
                )
            ]))
        return order

    def _substitute(self,
                    election: Election,
                    cty_id: Any,
                    cand_id: Any,
                    seated: Dict[Tuple[Any, Any], List[int]],
                    gender: str,
                    ) -> Optional[QuotaSubstitution]:
        candidacy = election.get_constituency(cty_id).get_candidacy(cand_id)
        positions = seated[cty_id, cand_id]
        replaceable = [
            seat_i for seat_i, nom_i in enumerate(positions)
            if candidacy.nominees[nom_i].gender != gender
        ]
        alternates = [
            nom_i for nom_i, nominee in enumerate(candidacy.nominees)
            if nom_i not in positions
            and not nominee.withdrawn
            and nominee.gender == gender
        ]
        if not replaceable or not alternates:
            return None
        seat_i = replaceable[-1]
        replaced = candidacy.nominees[positions[seat_i]]
        positions[seat_i] = alternates[0]
        return QuotaSubstitution(
            constituency_id=cty_id,
            candidacy_id=cand_id,
            position=seat_i,
            replaced=replaced,
            substitute=candidacy.nominees[alternates[0]],
        )

    def _nominee(self,
                 election: Election,
                 cty_id: Any,
                 cand_id: Any,
                 nom_i: int,
                 ) -> Nominee:
        return election.get_constituency(cty_id).get_candidacy(
            cand_id
        ).nominees[nom_i]

    def _adjusted(self,
                  election: Election,
                  allocations: Allocations,
                  seated: Dict[Tuple[Any, Any], List[int]],
                  ) -> Allocations:
        adjusted = {}
        for cty_id, cty_allocs in allocations.items():
            constituency = election.get_constituency(cty_id)
            adjusted[cty_id] = {}
            for cand_id, alloc in cty_allocs.items():
                nominees = constituency.get_candidacy(cand_id).nominees
                adjusted[cty_id][cand_id] = dataclasses.replace(
                    alloc,
                    elected=tuple(
                        nominees[i] for i in seated.get((cty_id, cand_id), [])
                    ),
                )
        return adjusted
