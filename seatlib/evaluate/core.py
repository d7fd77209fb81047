'''Errors and warnings raised by the apportionment machinery.

All errors abort the whole calculation of an election: a result is either
fully computed and internally consistent, or not produced at all. The only
non-fatal condition, an unmet gender quota, is reported by a warning object
that is carried in the result rather than raised.
'''

from __future__ import annotations

from typing import Any, Dict


class ApportionmentError(Exception):
    '''An election could not be apportioned from the given setup.'''
    pass


class IncompatibleStrategyError(ApportionmentError):
    '''The calculation strategy cannot be applied to the given election.

    :param strategy: Name of the strategy that was found incompatible.
    :param reason: Why the strategy does not apply.
    '''
    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f'strategy {strategy} cannot apply: {reason}')


class DivisionByZeroError(ApportionmentError, ZeroDivisionError):
    '''A quotient was requested for zero seats.

    This means a constituency was set up with no seats to fill, which points
    to corrupted election data upstream.
    '''
    pass


class InvalidQuotientError(ApportionmentError):
    '''The electoral quotient cannot distribute the seats of a constituency.

    A rounded quotient can become zero or small enough to award more seats
    at full quotients than the constituency has, for very small numbers of
    expressed suffrages.

    :param quotient: The offending quotient.
    :param n_seats: Number of seats to be filled.
    '''
    def __init__(self, quotient: Any, n_seats: int):
        self.quotient = quotient
        self.n_seats = n_seats
        super().__init__(
            f'quotient {quotient} cannot distribute {n_seats} seats'
        )


class MalformedVoteDataError(ApportionmentError, ValueError):
    '''Vote results are negative, missing, duplicated or inconsistent.

    :param message: Description of the problem.
    :param constituency: Identifier of the affected constituency, if known.
    '''
    def __init__(self, message: str, constituency: Any = None):
        self.constituency = constituency
        if constituency is not None:
            message = f'constituency {constituency}: {message}'
        super().__init__(message)


class NoEligibleCandidacyError(ApportionmentError):
    '''No candidacy in a constituency may receive seats.

    Raised when every candidacy fails the thresholds (or received no votes),
    since the seats of the constituency could not be distributed at all.
    '''
    def __init__(self, constituency: Any):
        self.constituency = constituency
        super().__init__(
            f'no eligible candidacy in constituency {constituency}'
        )


class QuotaUnmetWarning(UserWarning):
    '''The gender quota could not be met by substitutions.

    Returned within the election result; the caller decides whether to
    publish the result anyway.

    :param gender: The gender targeted by the quota.
    :param required: Number of seats the quota requires for that gender.
    :param obtained: Number of seats held by that gender after substitution.
    '''
    def __init__(self,
                 gender: str,
                 required: int,
                 obtained: int,
                 ):
        self.gender = gender
        self.required = required
        self.obtained = obtained
        super().__init__(
            f'quota of {required} seats for gender {gender} unmet:'
            f' {obtained} obtained, no eligible alternates left'
        )

    @property
    def missing(self) -> int:
        return self.required - self.obtained

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, QuotaUnmetWarning)
            and (self.gender, self.required, self.obtained)
            == (other.gender, other.required, other.obtained)
        )

    def __hash__(self) -> int:
        return hash((self.gender, self.required, self.obtained))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'warning': type(self).__name__,
            'gender': self.gender,
            'required': self.required,
            'obtained': self.obtained,
            'message': str(self),
        }
