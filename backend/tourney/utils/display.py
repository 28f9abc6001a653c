"""
Human-readable labels for teams, matches and rounds.
"""

from typing import Mapping, Optional, Sequence

from tourney.models.match import BracketSide, Match, MatchSlot, Side, SourceRole
from tourney.models.team import Competitor, Team


def team_display_name(members: Sequence[Competitor]) -> str:
    return " & ".join(m.name for m in members)


def slot_label(slot: MatchSlot, teams_by_id: Mapping[str, Team]) -> str:
    """Team name, or "Winner of W1-2" / "Loser of W2-1" while unresolved."""
    if slot.team_id is not None:
        team = teams_by_id.get(slot.team_id)
        return team.name if team else slot.team_id
    if slot.source is not None:
        role = "Winner" if slot.source.role == SourceRole.WINNER else "Loser"
        return f"{role} of {slot.source.match_id}"
    return "TBD"


def match_title(match: Match, teams_by_id: Mapping[str, Team]) -> str:
    if match.is_bye:
        return f"Bye for {slot_label(match.slot(Side.A), teams_by_id)}"
    return f"Match {match.id}"


def _elimination_round_name(teams_in_round: int, prefix: str = "") -> str:
    if teams_in_round == 2:
        return f"{prefix}Final"
    if teams_in_round == 4:
        return f"{prefix}Semifinal"
    if teams_in_round == 8:
        return f"{prefix}Quarterfinal"
    return f"{prefix}Round of {teams_in_round}"


def round_name(
    bracket: BracketSide,
    round_number: int,
    total_rounds: int,
    bracket_size: Optional[int] = None,
) -> str:
    """
    Display name for a round.

    `total_rounds` is the number of rounds in that bracket; `bracket_size` (the
    power-of-two first-round size) is needed for single/winners brackets.
    """
    if bracket == BracketSide.final:
        return "Grand Final" if round_number == 1 else "Bracket Reset"

    if bracket == BracketSide.losers:
        rounds_from_end = total_rounds - round_number
        if rounds_from_end == 0:
            return "Losers Final"
        if rounds_from_end == 1:
            return "Losers Semifinal"
        return f"Losers Round {round_number}"

    size = bracket_size or 2 ** total_rounds
    teams_in_round = size // 2 ** (round_number - 1)
    prefix = "Winners " if bracket == BracketSide.winners else ""
    return _elimination_round_name(teams_in_round, prefix)
