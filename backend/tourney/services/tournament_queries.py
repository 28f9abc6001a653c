"""
Read-only queries over a Tournament: completion, champion, playable matches,
standings and summary. Nothing here mutates its input.
"""

from collections import Counter
from typing import Dict, List, Optional, Tuple

from tourney.models.match import BracketSide, Match, MatchState, Side
from tourney.models.team import Team
from tourney.models.tournament import BracketType, Tournament, TournamentSummary
from tourney.services.bracket_topology import BRACKET_ORDER, match_sort_key, primary_bracket


def team_by_id(tournament: Tournament) -> Dict[str, Team]:
    return {team.id: team for team in tournament.teams}


def matches_in_bracket(tournament: Tournament, bracket: BracketSide) -> List[Match]:
    return sorted((m for m in tournament.matches if m.bracket == bracket), key=match_sort_key)


def matches_for_round(tournament: Tournament, bracket: BracketSide, round_number: int) -> List[Match]:
    return [m for m in matches_in_bracket(tournament, bracket) if m.round == round_number]


def all_rounds(tournament: Tournament, bracket: BracketSide) -> List[int]:
    return sorted({m.round for m in tournament.matches if m.bracket == bracket})


def current_round(tournament: Tournament) -> int:
    """Lowest primary-bracket round still holding an unresolved match; else the last round."""
    primary = matches_in_bracket(tournament, primary_bracket(tournament.settings.bracket_type))
    if not primary:
        return 1
    open_rounds = [m.round for m in primary if m.state != MatchState.resolved]
    if open_rounds:
        return min(open_rounds)
    return max(m.round for m in primary)


def pending_matches(tournament: Tournament) -> List[Match]:
    """Matches a user can act on next: ready, never byes."""
    return sorted(
        (m for m in tournament.matches if m.state == MatchState.ready and not m.is_bye),
        key=match_sort_key,
    )


def determining_match(tournament: Tournament) -> Optional[Match]:
    """
    The match whose winner is (or will be) the champion, as the bracket stands now.

    Knockout: the single match of the last round.
    Double elimination: the last created final (GF2 once a reset was triggered).
    """
    if tournament.settings.bracket_type == BracketType.knockout:
        rounds = all_rounds(tournament, BracketSide.single)
        if not rounds:
            return None
        last = matches_for_round(tournament, BracketSide.single, rounds[-1])
        return last[0] if len(last) == 1 else None

    finals = matches_in_bracket(tournament, BracketSide.final)
    return finals[-1] if finals else None


def is_complete(tournament: Tournament) -> bool:
    match = determining_match(tournament)
    if match is None or match.state != MatchState.resolved:
        return False
    if match.bracket == BracketSide.final and match.round == 1:
        # Slot B winning the first final forces a bracket reset
        return match.outcome.winner == Side.A
    return True


def champion(tournament: Tournament) -> Optional[Team]:
    if not is_complete(tournament):
        return None
    return team_by_id(tournament).get(determining_match(tournament).winner_team_id)


def losses_by_team(tournament: Tournament) -> Dict[str, int]:
    losses: Counter = Counter({team.id: 0 for team in tournament.teams})
    for match in tournament.matches:
        loser = match.loser_team_id
        if loser is not None:
            losses[loser] += 1
    return dict(losses)


def _elimination_key(match: Match) -> Tuple[int, int]:
    """Later elimination sorts higher (better finish)."""
    return (BRACKET_ORDER[match.bracket], match.round)


def final_standings(tournament: Tournament) -> List[Tuple[int, Team]]:
    """
    (place, team) for every team once the tournament is complete; [] before.

    Champion is 1st. Other teams are ranked by when they were eliminated (lost
    a match with no loser edge); teams knocked out at the same stage share a place.
    """
    winner = champion(tournament)
    if winner is None:
        return []

    teams = team_by_id(tournament)
    eliminated_at: Dict[str, Tuple[int, int]] = {}
    for match in tournament.matches:
        if match.state != MatchState.resolved or match.is_bye or match.loser_to is not None:
            continue
        eliminated_at[match.loser_team_id] = _elimination_key(match)

    ranked = sorted(eliminated_at.items(), key=lambda item: item[1], reverse=True)
    standings: List[Tuple[int, Team]] = [(1, winner)]
    for team_id, key in ranked:
        place = 2 + sum(1 for other in eliminated_at.values() if other > key)
        standings.append((place, teams[team_id]))
    return standings


def summarize(tournament: Tournament) -> TournamentSummary:
    return TournamentSummary(
        total_teams=len(tournament.teams),
        total_rounds=len(all_rounds(tournament, primary_bracket(tournament.settings.bracket_type))),
        current_round=tournament.current_round,
        is_complete=is_complete(tournament),
        champion=champion(tournament),
    )
