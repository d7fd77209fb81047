import sys
import os
import decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import seatlib.strategy
from seatlib.evaluate.core import (
    DivisionByZeroError, IncompatibleStrategyError, InvalidQuotientError,
    MalformedVoteDataError, NoEligibleCandidacyError,
)
from seatlib.model import (
    Candidacy, Constituency, Election, NationalVoteResult, Nominee,
    VoteResult,
)
from seatlib.strategy import OfficialStrategy, StandardStrategy


def constituency(n_seats=5, cand_ids='ABC'):
    return Constituency('C1', n_seats, tuple(
        Candidacy(cand_id, tuple(
            Nominee(f'{cand_id.lower()}{i}', 'F' if i % 2 else 'M')
            for i in range(1, 6)
        )) for cand_id in cand_ids
    ))


def election(**kwargs):
    return Election('E', constituencies=(constituency(),), **kwargs)


def results(votes, total=None):
    if total is None:
        total = sum(votes.values())
    return [VoteResult(cand, n, total) for cand, n in votes.items()]


def seats(allocations):
    return {cand: alloc.seats for cand, alloc in allocations.items()}


def test_register():
    assert seatlib.strategy.get('standard') is StandardStrategy
    assert seatlib.strategy.get('official') is OfficialStrategy
    with pytest.raises(KeyError):
        seatlib.strategy.get('dhondt')


def test_create():
    assert isinstance(seatlib.strategy.create(), StandardStrategy)
    official = seatlib.strategy.create('official', enabled=True)
    assert isinstance(official, OfficialStrategy)
    assert official.enabled
    assert seatlib.strategy.create(official) is official


def test_metadata():
    meta = StandardStrategy().get_metadata()
    assert meta['key'] == 'standard'
    assert meta['name'] == 'Standard Legislative Calculator'
    assert meta['version'] == '1.0.0'
    assert meta['class'] == 'seatlib.strategy.StandardStrategy'
    assert meta['quotient'] == 'hare'
    official = OfficialStrategy(enabled=True)
    assert official.get_name() == 'Official Commission Calculator'
    assert official.get_version() == '2.0.0'
    assert official.get_metadata()['threshold_precision'] == 2
    assert official.get_metadata()['quota_order'] == ['identifier', 'votes']


def test_applicability():
    standard = StandardStrategy()
    assert standard.can_apply(election())
    assert not standard.can_apply(election(kind='presidential'))
    with pytest.raises(IncompatibleStrategyError) as excinfo:
        standard.check_applicable(election(kind='presidential'))
    assert excinfo.value.strategy == 'standard'
    assert not standard.can_apply(Election('E'))


def test_official_must_be_enabled():
    assert not OfficialStrategy().can_apply(election())
    with pytest.raises(IncompatibleStrategyError):
        OfficialStrategy().check_applicable(election())
    assert OfficialStrategy(enabled=True).can_apply(election())
    assert not OfficialStrategy(enabled=True).can_apply(
        election(kind='communal')
    )


def test_standard_seats():
    strategy = StandardStrategy()
    allocs = strategy.calculate_seats(
        election(), constituency(),
        results({'A': 4500, 'B': 3500, 'C': 2000})
    )
    assert seats(allocs) == {'A': 2, 'B': 2, 'C': 1}
    assert [n.name for n in allocs['A'].elected] == ['a1', 'a2']
    assert [n.name for n in allocs['C'].elected] == ['c1']
    assert strategy.calculate_quotient(10000, 5) == 2000


def test_threshold_defaults():
    standard = StandardStrategy()
    official = OfficialStrategy(enabled=True)
    assert standard.national_threshold(election()) is None
    assert standard.constituency_threshold(election()) is None
    assert official.national_threshold(election()) == 10
    assert official.constituency_threshold(election()) == 20
    configured = election(national_threshold=5, constituency_threshold=0)
    assert official.national_threshold(configured) == 5
    assert official.constituency_threshold(configured) == 0


def test_constituency_threshold():
    strategy = StandardStrategy()
    allocs = strategy.calculate_seats(
        election(constituency_threshold=25), constituency(),
        results({'A': 4500, 'B': 3500, 'C': 2000})
    )
    assert seats(allocs) == {'A': 3, 'B': 2, 'C': 0}
    assert not allocs['C'].eligible
    assert allocs['C'].elected == ()


def test_national_threshold():
    nationals = {
        'A': NationalVoteResult('A', 50000, 100000),
        'B': NationalVoteResult('B', 42000, 100000),
        'C': NationalVoteResult('C', 8000, 100000),
    }
    strategy = StandardStrategy()
    allocs = strategy.calculate_seats(
        election(national_threshold=10, national_results=nationals),
        constituency(),
        results({'A': 4500, 'B': 3500, 'C': 2000})
    )
    assert seats(allocs) == {'A': 3, 'B': 2, 'C': 0}


def test_national_threshold_missing_result():
    nationals = {
        'A': NationalVoteResult('A', 50000, 100000),
        'B': NationalVoteResult('B', 42000, 100000),
    }
    allocs = StandardStrategy().calculate_seats(
        election(national_threshold=10, national_results=nationals),
        constituency(),
        results({'A': 4500, 'B': 3500, 'C': 2000})
    )
    assert not allocs['C'].eligible


def test_official_rounded_threshold():
    votes = {'A': 40000, 'B': 40005, 'C': 19995}
    nationals = {
        cand: NationalVoteResult(cand, n, 100000)
        for cand, n in votes.items()
    }
    elect = election(national_results=nationals)
    official = seatlib.strategy.create('official', enabled=True)
    allocs = official.calculate_seats(elect, constituency(), results(votes))
    assert allocs['C'].eligible
    allocs = StandardStrategy().calculate_seats(
        election(national_results=nationals, constituency_threshold=20),
        constituency(), results(votes)
    )
    assert not allocs['C'].eligible


def test_official_quotient():
    official = OfficialStrategy(enabled=True)
    assert official.calculate_quotient(10000, 3) == decimal.Decimal('3333.33')


def test_official_tiebreak_registration():
    cty = constituency(n_seats=1, cand_ids='BA')
    nationals = {
        cand: NationalVoteResult(cand, 100, 200) for cand in 'AB'
    }
    elect = Election('E', constituencies=(cty,), national_results=nationals,
                     national_threshold=0, constituency_threshold=0)
    votes = results({'B': 100, 'A': 100})
    standard = StandardStrategy().calculate_seats(elect, cty, votes)
    assert seats(standard) == {'B': 0, 'A': 1}
    official = OfficialStrategy(enabled=True).calculate_seats(
        elect, cty, votes
    )
    assert seats(official) == {'B': 1, 'A': 0}


def test_zero_votes_ineligible():
    allocs = StandardStrategy().calculate_seats(
        election(), constituency(n_seats=10),
        results({'A': 10, 'B': 0, 'C': 0}, total=10)
    )
    assert seats(allocs) == {'A': 10, 'B': 0, 'C': 0}
    assert not allocs['B'].eligible


def test_no_eligible():
    with pytest.raises(NoEligibleCandidacyError) as excinfo:
        StandardStrategy().calculate_seats(
            election(constituency_threshold=50), constituency(),
            results({'A': 4500, 'B': 3500, 'C': 2000})
        )
    assert excinfo.value.constituency == 'C1'
    with pytest.raises(NoEligibleCandidacyError):
        StandardStrategy().calculate_seats(
            election(), constituency(), results({'A': 0, 'B': 0, 'C': 0})
        )


def test_zero_seats():
    with pytest.raises(DivisionByZeroError):
        StandardStrategy().calculate_seats(
            election(), constituency(n_seats=0),
            results({'A': 4500, 'B': 3500, 'C': 2000})
        )


@pytest.mark.parametrize('vote_results', [
    results({'A': -1, 'B': 3500, 'C': 2000}),
    results({'A': 4500, 'B': 3500}),
    results({'A': 4500, 'B': 3500, 'C': 2000, 'D': 1}),
    results({'A': 4500, 'B': 3500, 'C': 2000}, total=9000),
    results({'A': 4500, 'B': 3500, 'C': 2000}) + [
        VoteResult('A', 4500, 10000)
    ],
    [
        VoteResult('A', 4500, 10000),
        VoteResult('B', 3500, 10000),
        VoteResult('C', 2000, 12000),
    ],
    [
        VoteResult('A', 4500, 10000),
        VoteResult('B', None, 10000),
        VoteResult('C', 2000, 10000),
    ],
])
def test_malformed_votes(vote_results):
    with pytest.raises(MalformedVoteDataError) as excinfo:
        StandardStrategy().calculate_seats(
            election(), constituency(), vote_results
        )
    assert excinfo.value.constituency == 'C1'
    assert isinstance(excinfo.value, ValueError)


def test_short_list():
    cty = Constituency('C1', 3, (
        Candidacy('A', (Nominee('a1', 'F'),)),
        Candidacy('B', ()),
    ))
    allocs = StandardStrategy().calculate_seats(
        Election('E', constituencies=(cty,)), cty,
        results({'A': 900, 'B': 100})
    )
    assert allocs['A'].seats == 3
    assert [n.name for n in allocs['A'].elected] == ['a1']


def test_repr():
    assert repr(StandardStrategy()) == '<StandardStrategy(standard 1.0.0)>'


@pytest.mark.parametrize('n_seats', [23, 300])
def test_official_rounded_quotient_too_small(n_seats):
    cty = constituency(n_seats=n_seats, cand_ids='A')
    elect = Election('E', constituencies=(cty,), national_results={
        'A': NationalVoteResult('A', 1, 1),
    })
    with pytest.raises(InvalidQuotientError) as excinfo:
        OfficialStrategy(enabled=True).calculate_seats(
            elect, cty, results({'A': 1})
        )
    assert excinfo.value.n_seats == n_seats
    # the exact quotient still distributes all seats
    allocs = StandardStrategy().calculate_seats(elect, cty, results({'A': 1}))
    assert allocs['A'].seats == n_seats


def test_negative_seats():
    with pytest.raises(MalformedVoteDataError):
        StandardStrategy().calculate_seats(
            election(), constituency(n_seats=-2),
            results({'A': 4500, 'B': 3500, 'C': 2000})
        )
