"""Evaluators that turn vote results into seats.

The submodules evaluate a single step of the apportionment each: thresholds,
the proportional seat distribution and the gender quota. The errors raised
by them are importable from this package directly.
"""

from seatlib.evaluate.core import *     # noqa
