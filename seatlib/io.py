"""Election snapshots and results as JSON documents.

An election document holds the setup of the election and the vote results
of its constituencies together::

    {
        "id": "2026-GE",
        "kind": "legislative",
        "strategy": "standard",
        "national_threshold": 5,
        "gender_quota": 40,
        "constituencies": [
            {
                "id": "C1",
                "n_seats": 5,
                "expressed_total": 10000,
                "candidacies": [
                    {
                        "id": "A",
                        "party": "PA",
                        "votes": 4500,
                        "nominees": [{"name": "Ana", "gender": "F"}]
                    }
                ]
            }
        ]
    }

Only ``id`` is required at the top level, and ``id``, ``n_seats`` and
``candidacies`` in each constituency. The expressed suffrages total of
a constituency defaults to the sum of its candidacies' votes. Nationwide
results may be given in a ``national_results`` list of objects with
``party``, ``votes`` and ``expressed_total`` keys; otherwise they are
aggregated from the constituencies. Decimal numbers are read as exact
decimals, never as floats.
"""

from __future__ import annotations

import json
import decimal
import logging
import dataclasses
from typing import Any, Dict, List, TextIO

from seatlib.model import (
    Candidacy, Constituency, Election, ElectionResult, Identifier,
    NationalVoteResult, Nominee, VoteResult,
)


class ParseError(Exception):
    """An input that is not a valid election document was detected."""
    pass


@dataclasses.dataclass
class ElectionData:
    """A container for the contents of an election document."""
    election: Election
    vote_results: Dict[Identifier, List[VoteResult]]


def load(file: TextIO) -> ElectionData:
    """Load an election and its vote results from a JSON file."""
    return loads(file.read())


def loads(text: str) -> ElectionData:
    """Load an election and its vote results from a JSON string."""
    try:
        document = json.loads(text, parse_float=decimal.Decimal)
    except json.JSONDecodeError as err:
        raise ParseError(f'invalid JSON: {err}') from err
    return parse(document)


def parse(document: Dict[str, Any]) -> ElectionData:
    """Build an election and its vote results from a parsed JSON document.

    :param document: The document, as a dictionary.
    :raises ParseError: If required keys are missing or values are of wrong
        types.
    """
    _check_type(document, dict, 'election document')
    constituencies = []
    vote_results = {}
    cty_docs = document.get('constituencies', [])
    _check_type(cty_docs, list, 'constituency list')
    for cty_doc in cty_docs:
        constituency, results = _parse_constituency(cty_doc)
        if constituency.id in vote_results:
            raise ParseError(f'duplicate constituency {constituency.id}')
        constituencies.append(constituency)
        vote_results[constituency.id] = results
    election = Election(
        id=_require(document, 'id', 'election'),
        kind=document.get('kind', 'legislative'),
        constituencies=tuple(constituencies),
        strategy=document.get('strategy'),
        national_threshold=_optional_number(document, 'national_threshold'),
        constituency_threshold=_optional_number(
            document, 'constituency_threshold'
        ),
        gender_quota=_optional_number(document, 'gender_quota'),
        quota_gender=document.get('quota_gender', 'F'),
        national_results=_parse_national(document.get('national_results')),
    )
    logging.info("loaded election %s: %d constituencies, %d seats",
                 election.id, len(constituencies), election.n_seats)
    return ElectionData(election, vote_results)


def dump(file: TextIO, result: ElectionResult, **kwargs) -> None:
    """Write an election result to a file as JSON.

    :param file: The file to write to.
    :param result: The result to write.
    :param kwargs: Formatting arguments for :func:`json.dump`.
    """
    kwargs.setdefault('indent', 2)
    json.dump(result.to_dict(), file, ensure_ascii=False, **kwargs)
    file.write('\n')


def dumps(result: ElectionResult, **kwargs) -> str:
    """Return an election result as a JSON string."""
    kwargs.setdefault('indent', 2)
    return json.dumps(result.to_dict(), ensure_ascii=False, **kwargs)


def _parse_constituency(cty_doc: Any):
    _check_type(cty_doc, dict, 'constituency')
    cty_id = _require(cty_doc, 'id', 'constituency')
    context = f'constituency {cty_id}'
    n_seats = _require(cty_doc, 'n_seats', context)
    _check_type(n_seats, int, f'seat count of {context}')
    if n_seats < 0:
        raise ParseError(f'negative seat count of {context}: {n_seats}')
    candidacies = []
    votes = {}
    cand_docs = _require(cty_doc, 'candidacies', context)
    _check_type(cand_docs, list, f'candidacy list of {context}')
    for cand_doc in cand_docs:
        _check_type(cand_doc, dict, f'candidacy in {context}')
        cand_id = _require(cand_doc, 'id', f'candidacy in {context}')
        if cand_id in votes:
            raise ParseError(f'duplicate candidacy {cand_id} in {context}')
        n_votes = _require(cand_doc, 'votes', f'candidacy {cand_id}')
        _check_type(n_votes, int, f'votes of candidacy {cand_id}')
        votes[cand_id] = n_votes
        candidacies.append(Candidacy(
            id=cand_id,
            nominees=tuple(
                _parse_nominee(nom_doc, cand_id)
                for nom_doc in cand_doc.get('nominees', [])
            ),
            party=cand_doc.get('party'),
        ))
    expressed_total = cty_doc.get('expressed_total', sum(votes.values()))
    _check_type(expressed_total, int, f'expressed suffrages of {context}')
    return (
        Constituency(cty_id, n_seats, tuple(candidacies)),
        [
            VoteResult(cand_id, n_votes, expressed_total)
            for cand_id, n_votes in votes.items()
        ],
    )


def _parse_nominee(nom_doc: Any, cand_id: Identifier) -> Nominee:
    context = f'nominee of candidacy {cand_id}'
    _check_type(nom_doc, dict, context)
    return Nominee(
        name=_require(nom_doc, 'name', context),
        gender=_require(nom_doc, 'gender', context),
        withdrawn=bool(nom_doc.get('withdrawn', False)),
    )


def _parse_national(national_docs: Any):
    if national_docs is None:
        return None
    _check_type(national_docs, list, 'national results')
    results = {}
    for nat_doc in national_docs:
        _check_type(nat_doc, dict, 'national result')
        party = _require(nat_doc, 'party', 'national result')
        results[party] = NationalVoteResult(
            party,
            _require(nat_doc, 'votes', f'national result of {party}'),
            _require(nat_doc, 'expressed_total', f'national result of {party}'),
        )
    return results


def _require(document: Dict[str, Any], key: str, context: str) -> Any:
    try:
        return document[key]
    except KeyError:
        raise ParseError(f'{context} is missing the {key!r} key') from None


def _optional_number(document: Dict[str, Any], key: str) -> Any:
    value = document.get(key)
    if value is not None:
        _check_type(value, (int, decimal.Decimal), key)
    return value


def _check_type(value: Any, types: Any, context: str) -> None:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, types):
        raise ParseError(f'invalid {context}: {value!r}')
