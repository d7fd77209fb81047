"""A commandline tool for apportioning seats of an election from a JSON file.

Loads the election setup and vote results from a JSON election document,
apportions the seats by the configured (or selected) calculation strategy
and shows the seats won in each constituency.
"""

import argparse
import io
import logging
import sys
from typing import Optional

import seatlib.io
import seatlib.strategy
from seatlib.evaluate.core import ApportionmentError
from seatlib.model import ElectionResult
from seatlib.orchestrator import Apportioner

argparser = argparse.ArgumentParser(
    prog='seatlib',
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the election document from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the election document from standard input',
)
argparser.add_argument(
    '-s', '--strategy',
    help=(
        'calculation strategy to use (overrides the strategy configured'
        ' in the election document); one of: '
        + ', '.join(sorted(seatlib.strategy.STRATEGIES))
    ),
)
argparser.add_argument(
    '--enable-official',
    action='store_true',
    help='allow the official commission calculator to be used',
)
argparser.add_argument(
    '-o', '--output-file',
    type=argparse.FileType('w', encoding='utf8'),
    help='file to write the full result to as JSON',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all calculation log messages',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any calculation log messages',
)


def main(input_file: Optional[io.TextIOBase],
         use_stdin: bool = False,
         strategy: Optional[str] = None,
         enable_official: bool = False,
         output_file: Optional[io.TextIOBase] = None,
         verbose: bool = False,
         quiet: bool = False,
         ) -> int:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    try:
        data = seatlib.io.load(input_file)
    except seatlib.io.ParseError as err:
        logging.error("cannot load election: %s", err)
        return 2
    strategy_name = strategy or data.election.strategy_name
    options = {}
    if strategy_name == seatlib.strategy.OfficialStrategy.key:
        options['enabled'] = enable_official
    try:
        apportioner = Apportioner.from_config(strategy_name, options)
        result = apportioner.run(data.election, data.vote_results)
    except (ApportionmentError, KeyError) as err:
        logging.error("cannot apportion election %s: %s",
                      data.election.id, err)
        return 1
    show_result(result)
    if output_file is not None:
        seatlib.io.dump(output_file, result)
    return 0


def show_result(result: ElectionResult) -> None:
    """Show the seats won in each constituency and the quota outcome."""
    strategy = result.strategy
    print()
    print(f'Election {result.election_id} apportioned by'
          f' {strategy.get("name")} {strategy.get("version")}')
    for cty_id, cty_allocs in result.allocations.items():
        print()
        print(f'Constituency {cty_id}:'
              f' {sum(a.seats for a in cty_allocs.values())} seats,'
              f' quotient {result.quotients.get(cty_id)}')
        if not cty_allocs:
            continue
        left_col = [str(cand_id) for cand_id in cty_allocs.keys()]
        n_just_chars = len(max(left_col, key=len))
        for left, alloc in zip(left_col, cty_allocs.values()):
            mark = '' if alloc.eligible else ' (below threshold)'
            elected = ', '.join(nominee.name for nominee in alloc.elected)
            print(
                '  ', left.ljust(n_just_chars), ' ',
                str(alloc.votes).rjust(10), 'votes ',
                str(alloc.seats).rjust(3), 'seats',
                mark + (f' - {elected}' if elected else '')
            )
    if result.substitutions:
        print()
        print('Gender quota substitutions:')
        for subst in result.substitutions:
            print(f'   {subst.constituency_id} {subst.candidacy_id}:'
                  f' {subst.replaced.name} -> {subst.substitute.name}')
    for warning in result.warnings:
        print()
        print(f'WARNING: {warning}')


if __name__ == '__main__':
    args = argparser.parse_args()
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
    else:
        sys.exit(main(**vars(args)))
