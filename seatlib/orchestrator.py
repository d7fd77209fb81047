'''Apportionment of whole elections by a calculation strategy.

The :class:`Apportioner` is the single entry point of the engine for the
surrounding application. It applies a strategy to every constituency of an
election, joins the constituency results into one :class:`ElectionResult`
and runs the gender quota pass on it. Any error in any constituency aborts
the whole run, so that no partial election result is ever produced.

Audit logging and similar concerns of the caller can be attached as hooks
that are called before and after each run.
'''

import datetime
import logging
import dataclasses
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import seatlib.strategy
from seatlib.evaluate.core import MalformedVoteDataError
from seatlib.model import (
    Constituency, Election, ElectionResult, Identifier, NationalVoteResult,
    SeatAllocation, VoteResult,
)
from seatlib.strategy import CalculationStrategy


VoteResults = Dict[Identifier, Iterable[VoteResult]]

PreHook = Callable[[Election, CalculationStrategy], None]
PostHook = Callable[[Election, ElectionResult], None]


def national_results(election: Election,
                     vote_results: VoteResults,
                     ) -> Dict[Identifier, NationalVoteResult]:
    '''Aggregate constituency results into nationwide results by list.

    The national expressed suffrages total is the sum of the constituency
    totals; the votes of a list are the sum of the votes of all candidacies
    sharing its party key.

    :param election: The election, providing the candidacy lists.
    :param vote_results: Vote results by constituency.
    '''
    party_keys = {
        (cty.id, cand.id): cand.party_key
        for cty in election.constituencies
        for cand in cty.candidacies
    }
    party_votes = {}
    total_expressed = 0
    for cty in election.sorted_constituencies():
        cty_totals = set()
        for result in vote_results.get(cty.id, []):
            key = party_keys.get((cty.id, result.candidacy_id))
            if key is None:
                raise MalformedVoteDataError(
                    f'result for unknown candidacy {result.candidacy_id}',
                    cty.id
                )
            party_votes[key] = party_votes.get(key, 0) + result.votes
            cty_totals.add(result.expressed_total)
        if len(cty_totals) > 1:
            raise MalformedVoteDataError(
                f'inconsistent expressed suffrages totals {sorted(cty_totals)}',
                cty.id
            )
        total_expressed += cty_totals.pop() if cty_totals else 0
    return {
        key: NationalVoteResult(key, n_votes, total_expressed)
        for key, n_votes in party_votes.items()
    }


class Apportioner:
    '''Apportion the seats of an election by a calculation strategy.

    :param strategy: The strategy to use, or its configured name; the default
        strategy if not given.
    :param executor: An executor to calculate the constituencies on in
        parallel; if not given, they are calculated one by one.
    :param pre_hooks: Callables invoked with the election and the strategy
        before each run, after the strategy was found applicable.
    :param post_hooks: Callables invoked with the election and the final
        result after each successful run.
    '''
    def __init__(self,
                 strategy: Union[CalculationStrategy, str, None] = None,
                 executor: Optional[Executor] = None,
                 pre_hooks: Iterable[PreHook] = (),
                 post_hooks: Iterable[PostHook] = (),
                 ):
        self.strategy = seatlib.strategy.create(strategy)
        self.executor = executor
        self.pre_hooks = list(pre_hooks)
        self.post_hooks = list(post_hooks)
        logging.info("electoral calculation strategy loaded: %s %s",
                     self.strategy.get_name(), self.strategy.get_version())

    @classmethod
    def from_config(cls,
                    config: Union[Election, str, None] = None,
                    options: Optional[Dict[str, Any]] = None,
                    **kwargs) -> 'Apportioner':
        '''Create an apportioner with the strategy named in configuration.

        :param config: An election whose configured strategy to use, or the
            strategy name itself; the default strategy if not given.
        :param options: Keyword arguments for the strategy constructor.
        :param kwargs: Other arguments for the apportioner.
        '''
        if isinstance(config, Election):
            config = config.strategy_name
        strategy = seatlib.strategy.create(config, **(options or {}))
        return cls(strategy, **kwargs)

    def strategy_info(self) -> Dict[str, Any]:
        '''Return the metadata of the strategy in use.'''
        return self.strategy.get_metadata()

    def run(self,
            election: Election,
            vote_results: VoteResults,
            ) -> ElectionResult:
        '''Apportion the seats of all constituencies of an election.

        :param election: The election to apportion.
        :param vote_results: Vote results by constituency identifier.
        :returns: The final result, after the gender quota pass.
        :raises IncompatibleStrategyError: If the strategy cannot apportion
            the election; no constituency is calculated then.
        :raises ApportionmentError: If any constituency fails to calculate.
        '''
        self.strategy.check_applicable(election)
        vote_results = _listed(vote_results)
        for hook in self.pre_hooks:
            hook(election, self.strategy)
        logging.info("apportioning election %s (%d seats) by %s",
                     election.id, election.n_seats, self.strategy.get_name())
        if election.national_results is None:
            election = dataclasses.replace(
                election,
                national_results=national_results(election, vote_results),
            )
        constituencies = election.sorted_constituencies()
        allocations = {}
        for constituency, cty_allocs in zip(
            constituencies,
            self._calculate_all(election, constituencies, vote_results),
        ):
            allocations[constituency.id] = cty_allocs
        quotients = {
            cty.id: self.strategy.calculate_quotient(
                _expressed_total(vote_results.get(cty.id, [])), cty.n_seats
            )
            for cty in constituencies
        }
        allocations, substitutions, warnings = (
            self.strategy.apply_gender_quota(election, allocations)
        )
        result = ElectionResult(
            election_id=election.id,
            allocations=allocations,
            quotients=quotients,
            substitutions=substitutions,
            warnings=warnings,
            strategy=self.strategy.get_metadata(),
            calculated_at=datetime.datetime.now(datetime.timezone.utc),
        )
        logging.info("election %s apportioned: %d seats, %d substitutions,"
                     " %d warnings", election.id, result.total_seats(),
                     len(substitutions), len(warnings))
        for hook in self.post_hooks:
            hook(election, result)
        return result

    def _calculate_all(self,
                       election: Election,
                       constituencies: List[Constituency],
                       vote_results: VoteResults,
                       ) -> List[Dict[Identifier, SeatAllocation]]:
        if self.executor is None:
            return [
                self.strategy.calculate_seats(
                    election, cty, vote_results.get(cty.id, [])
                )
                for cty in constituencies
            ]
        futures = [
            self.executor.submit(
                self.strategy.calculate_seats,
                election, cty, vote_results.get(cty.id, [])
            )
            for cty in constituencies
        ]
        # joins all; the first failure in constituency order is raised
        return [future.result() for future in futures]

    def calculate_constituency(self,
                               election: Election,
                               constituency_id: Identifier,
                               vote_results: VoteResults,
                               ) -> Dict[Identifier, SeatAllocation]:
        '''Apportion a single constituency, without the gender quota pass.

        :param election: The election the constituency belongs to.
        :param constituency_id: Identifier of the constituency.
        :param vote_results: Vote results by constituency identifier; the
            other constituencies are used for national results if the
            election does not provide them.
        '''
        self.strategy.check_applicable(election)
        vote_results = _listed(vote_results)
        if election.national_results is None:
            election = dataclasses.replace(
                election,
                national_results=national_results(election, vote_results),
            )
        return self.strategy.calculate_seats(
            election,
            election.get_constituency(constituency_id),
            vote_results.get(constituency_id, []),
        )

    def verify_thresholds(self,
                          election: Election,
                          party: Identifier,
                          vote_results: VoteResults,
                          ) -> Dict[str, Any]:
        '''Report whether a list clears the thresholds of the election.

        :param election: The election.
        :param party: Party key of the list.
        :param vote_results: Vote results by constituency identifier.
        :returns: A dictionary with the national result and outcome, and
            the outcome in each constituency where the list stands.
        '''
        vote_results = _listed(vote_results)
        nationals = election.national_results
        if nationals is None:
            nationals = national_results(election, vote_results)
        national = nationals.get(party, NationalVoteResult(party, 0, 0))
        by_constituency = {}
        for cty in election.sorted_constituencies():
            cand_ids = [
                cand.id for cand in cty.candidacies if cand.party_key == party
            ]
            for result in vote_results.get(cty.id, []):
                if result.candidacy_id in cand_ids:
                    by_constituency[cty.id] = {
                        'candidacy_id': result.candidacy_id,
                        'votes': result.votes,
                        'expressed_total': result.expressed_total,
                        'passes': self.strategy.passes_constituency_threshold(
                            election, result
                        ),
                    }
        return {
            'party': party,
            'national': {
                'votes': national.votes,
                'expressed_total': national.expressed_total,
                'passes': self.strategy.passes_national_threshold(
                    election, national
                ),
            },
            'national_threshold': self.strategy.national_threshold(election),
            'constituency_threshold':
                self.strategy.constituency_threshold(election),
            'constituencies': by_constituency,
        }

    def compare_strategies(self,
                           election: Election,
                           vote_results: VoteResults,
                           other: Union[CalculationStrategy, str],
                           ) -> Dict[str, Any]:
        '''Apportion the election by another strategy and list differences.

        :param election: The election to apportion.
        :param vote_results: Vote results by constituency identifier.
        :param other: The strategy to compare with, or its name.
        :returns: A dictionary with both results, the seat differences by
            constituency and candidacy, and whether the results are identical.
        '''
        other_apportioner = Apportioner(other, executor=self.executor)
        own_result = self.run(election, vote_results)
        other_result = other_apportioner.run(election, vote_results)
        own_seats = own_result.seats()
        other_seats = other_result.seats()
        differences = []
        for cty_id in own_seats.keys() | other_seats.keys():
            own_cty = own_seats.get(cty_id, {})
            other_cty = other_seats.get(cty_id, {})
            for cand_id in own_cty.keys() | other_cty.keys():
                n_own = own_cty.get(cand_id, 0)
                n_other = other_cty.get(cand_id, 0)
                if n_own != n_other:
                    differences.append({
                        'constituency_id': cty_id,
                        'candidacy_id': cand_id,
                        'seats': n_own,
                        'other_seats': n_other,
                        'difference': abs(n_own - n_other),
                    })
        differences.sort(
            key=lambda diff: (diff['constituency_id'], diff['candidacy_id'])
        )
        return {
            'strategies': [
                self.strategy.key, other_apportioner.strategy.key
            ],
            'result': own_result,
            'other_result': other_result,
            'differences': differences,
            'identical': not differences,
        }


def _listed(vote_results: VoteResults
            ) -> Dict[Identifier, List[VoteResult]]:
    return {
        cty_id: list(results) for cty_id, results in vote_results.items()
    }


def _expressed_total(vote_results: Iterable[VoteResult]) -> int:
    for result in vote_results:
        return result.expressed_total
    return 0


def apportion(election: Election,
              vote_results: VoteResults,
              **kwargs) -> ElectionResult:
    '''Apportion an election by the strategy it configures.

    A shortcut for :meth:`Apportioner.from_config` followed by
    :meth:`Apportioner.run`.
    '''
    return Apportioner.from_config(election, **kwargs).run(
        election, vote_results
    )
