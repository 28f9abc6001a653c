from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import Field, SQLModel

from tourney.models.match import Match
from tourney.models.team import Team


class BracketType(str, Enum):
    knockout = "knockout"
    double_elimination = "double-elimination"


class Grouping(str, Enum):
    singles = "singles"
    doubles = "doubles"


class TournamentSettings(SQLModel):
    bracket_type: BracketType = BracketType.knockout
    grouping: Grouping = Grouping.singles
    randomize: bool = False


class Tournament(SQLModel):
    """Aggregate root: every Team and Match of one tournament."""

    id: Optional[int] = None  # assigned by the record store
    name: str = "Tournament"
    settings: TournamentSettings = Field(default_factory=TournamentSettings)
    teams: List[Team] = Field(default_factory=list)
    matches: List[Match] = Field(default_factory=list)
    current_round: int = 1
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_double_elimination(self) -> bool:
        return self.settings.bracket_type == BracketType.double_elimination

    def find_match(self, match_id: str) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None


class TournamentSummary(SQLModel):
    total_teams: int
    total_rounds: int
    current_round: int
    is_complete: bool
    champion: Optional[Team] = None
