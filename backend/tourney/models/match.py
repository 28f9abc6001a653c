from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class BracketSide(str, Enum):
    single = "single"
    winners = "winners"
    losers = "losers"
    final = "final"


class MatchState(str, Enum):
    pending = "pending"  # at least one slot still waits on a prior match
    ready = "ready"  # both slots bound, no outcome
    resolved = "resolved"  # outcome written; terminal


class Side(str, Enum):
    A = "A"
    B = "B"

    @property
    def other(self) -> "Side":
        return Side.B if self is Side.A else Side.A


class SourceRole(str, Enum):
    WINNER = "WINNER"
    LOSER = "LOSER"


_CODE_PREFIX = {
    BracketSide.single: "R",
    BracketSide.winners: "W",
    BracketSide.losers: "L",
}


def match_code(bracket: BracketSide, round_number: int, position: int = 1) -> str:
    """Stable match id: R2-1 (knockout), W1-3, L4-1, GF1/GF2 (finals)."""
    if bracket == BracketSide.final:
        return f"GF{round_number}"
    return f"{_CODE_PREFIX[bracket]}{round_number}-{position}"


class SlotSource(SQLModel):
    """Upstream match whose winner/loser fills a slot."""

    match_id: str
    role: SourceRole


class SlotRef(SQLModel):
    """Downstream edge target: slot `side` of match `match_id`."""

    match_id: str
    side: Side


class MatchSlot(SQLModel):
    team_id: Optional[str] = None
    source: Optional[SlotSource] = None

    @property
    def is_bound(self) -> bool:
        return self.team_id is not None

    @property
    def is_empty(self) -> bool:
        return self.team_id is None and self.source is None


class MatchOutcome(SQLModel):
    winner: Side
    # Byes carry no scores
    score_a: Optional[int] = None
    score_b: Optional[int] = None


class Match(SQLModel):
    id: str  # match code, e.g. "R1-2", "W2-1", "L3-1", "GF1"
    bracket: BracketSide
    round: int
    position: int  # 1-based within (bracket, round)
    slot_a: MatchSlot = Field(default_factory=MatchSlot)
    slot_b: MatchSlot = Field(default_factory=MatchSlot)
    state: MatchState = MatchState.pending
    is_bye: bool = False
    outcome: Optional[MatchOutcome] = None

    # Bracket Graph edges (None on terminal matches / losers-bracket losers)
    winner_to: Optional[SlotRef] = None
    loser_to: Optional[SlotRef] = None

    def slot(self, side: Side) -> MatchSlot:
        return self.slot_a if side is Side.A else self.slot_b

    @property
    def is_resolved(self) -> bool:
        return self.state == MatchState.resolved

    @property
    def winner_team_id(self) -> Optional[str]:
        if self.outcome is None:
            return None
        return self.slot(self.outcome.winner).team_id

    @property
    def loser_team_id(self) -> Optional[str]:
        if self.outcome is None or self.is_bye:
            return None
        return self.slot(self.outcome.winner.other).team_id

    def refresh_state(self) -> None:
        """Derive pending/ready from slot binding. Resolved matches are left alone."""
        if self.state == MatchState.resolved:
            return
        if self.slot_a.is_bound and self.slot_b.is_bound:
            self.state = MatchState.ready
        else:
            self.state = MatchState.pending
