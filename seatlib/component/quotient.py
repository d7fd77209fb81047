'''Electoral quotient functions used in largest-remainder apportionment.

A quotient function takes the total number of expressed suffrages in a
constituency and the number of seats to fill there and returns the number of
votes that is worth one seat. The exact quotient function returns fractions
so that the floor and remainder comparisons made downstream are stable.

All supported quotient functions are assembled in the `QUOTIENTS` register
keyed by their name. `get()` retrieves from this register by string key;
`construct()` also accepts callables and passes them through.
'''

import decimal
from fractions import Fraction

import seatlib.component.core
from seatlib.evaluate.core import DivisionByZeroError, MalformedVoteDataError


QUOTIENTS = seatlib.component.core.Register('quotient')

quotient_mark, get, construct = seatlib.component.core.register_functions(
    QUOTIENTS
)

DECIMAL_PLACES = decimal.Decimal('0.01')


def _check_arguments(total_expressed: int, n_seats: int) -> None:
    if n_seats == 0:
        raise DivisionByZeroError('cannot compute quotient for zero seats')
    elif n_seats < 0:
        raise MalformedVoteDataError(f'negative number of seats: {n_seats}')
    if total_expressed < 0:
        raise MalformedVoteDataError(
            f'negative expressed suffrages: {total_expressed}'
        )


@quotient_mark
def hare(total_expressed: int, n_seats: int) -> Fraction:
    '''Hare quotient, total expressed suffrages divided by seats.

    This is the exact variant, giving the unrounded fraction.
    '''
    _check_arguments(total_expressed, n_seats)
    return Fraction(total_expressed, n_seats)


@quotient_mark
def hare_decimal(total_expressed: int, n_seats: int) -> decimal.Decimal:
    '''Hare quotient rounded to two decimal places, half up.

    This is the variant published in official count reports, where the
    quotient is printed (and then applied) with two decimals.
    '''
    _check_arguments(total_expressed, n_seats)
    with decimal.localcontext() as context:
        context.rounding = decimal.ROUND_HALF_UP
        return (
            decimal.Decimal(total_expressed) / decimal.Decimal(n_seats)
        ).quantize(DECIMAL_PLACES)


def quotient(total_expressed: int, n_seats: int) -> Fraction:
    '''Return the exact electoral quotient.

    :param total_expressed: Total expressed suffrages in the constituency.
    :param n_seats: Number of seats to fill in the constituency.
    :raises DivisionByZeroError: If the number of seats is zero.
    '''
    return hare(total_expressed, n_seats)
