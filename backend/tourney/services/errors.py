"""
Tournament error taxonomy.

Raised synchronously by seeding, the progression engine and the tournament
service. None of them is swallowed inside the package; callers decide how to
surface them (the HTTP layer maps them to status codes).
"""


class TournamentError(Exception):
    """Base class for every bracket/tournament failure"""

    pass


class InsufficientCompetitors(TournamentError):
    """Fewer than two competitors (or teams) to build a bracket from"""

    pass


class InvalidScore(TournamentError):
    """Tied, negative or non-integer scores"""

    pass


class MatchNotFound(TournamentError):
    pass


class MatchNotReady(TournamentError):
    """At least one slot of the match is not bound to a team yet"""

    pass


class InvalidOperation(TournamentError):
    """Mutating a bye or an already-resolved match"""

    pass


class BracketCorruption(TournamentError):
    """
    A destination slot already holds a different team (or belongs to a resolved
    match). Indicates a topology bug; the tournament should not be mutated further.
    """

    pass


class TournamentNotFound(TournamentError):
    pass
