from tourney.models.match import (
    BracketSide,
    Match,
    MatchOutcome,
    MatchSlot,
    MatchState,
    Side,
    SlotRef,
    SlotSource,
    SourceRole,
    match_code,
)
from tourney.models.stored_record import StoredRecord
from tourney.models.team import Competitor, Team
from tourney.models.tournament import (
    BracketType,
    Grouping,
    Tournament,
    TournamentSettings,
    TournamentSummary,
)

__all__ = [
    "BracketSide",
    "BracketType",
    "Competitor",
    "Grouping",
    "Match",
    "MatchOutcome",
    "MatchSlot",
    "MatchState",
    "Side",
    "SlotRef",
    "SlotSource",
    "SourceRole",
    "StoredRecord",
    "Team",
    "Tournament",
    "TournamentSettings",
    "TournamentSummary",
    "match_code",
]
