"""Seatlib - a library for apportioning seats in list-based elections.

Seatlib distributes the seats of an election among the candidacy lists of its
constituencies, following the rules of a configurable calculation strategy.

An apportionment proceeds in these steps:

-   The electoral quotient of each constituency is computed from its
    expressed suffrages and number of seats, by the functions from the
    :mod:`component.quotient` module.
-   Candidacies failing the national or constituency threshold are excluded
    from the distribution (the :mod:`evaluate.threshold` module).
-   The seats are distributed among the remaining candidacies by the largest
    remainder method (the :mod:`evaluate.proportional` module).
-   After all constituencies are apportioned, seats are handed over within
    lists until the gender quota is met, if the election sets one (the
    :mod:`evaluate.quota` module).

The steps are composed into named calculation strategies by the
:mod:`strategy` module. The :class:`Apportioner` from the :mod:`orchestrator`
module applies a strategy to a whole election and is the entry point for
most uses.
"""
