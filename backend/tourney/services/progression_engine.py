"""
Progression Engine: the single authority for bracket advancement.

report_result() validates a reported score, writes the outcome once, then walks
the Bracket Graph edges: the winner along `winner_to`, and in double elimination
the loser along `loser_to`. A resolved first final whose slot B won creates the
bracket-reset final.

The engine holds no state. It takes a Tournament and returns a new one; the
input object is never mutated, so a caller that fails to persist the result can
simply keep the previous value.
"""

import logging
import random
from typing import Optional, Sequence

from tourney.models.match import BracketSide, Match, MatchOutcome, MatchState, Side, SlotRef, match_code
from tourney.models.team import Competitor
from tourney.models.tournament import Tournament, TournamentSettings
from tourney.services.bracket_topology import build_bracket, build_bracket_reset
from tourney.services.errors import (
    BracketCorruption,
    InvalidOperation,
    InvalidScore,
    MatchNotFound,
    MatchNotReady,
)
from tourney.services.seeding import seed_teams
from tourney.services.tournament_queries import current_round

logger = logging.getLogger(__name__)


def create_tournament(
    competitors: Sequence[Competitor],
    settings: TournamentSettings,
    name: str = "Tournament",
    rng: Optional[random.Random] = None,
) -> Tournament:
    """Seed teams and lay out the full bracket. Not persisted."""
    teams = seed_teams(competitors, settings.grouping, settings.randomize, rng=rng)
    tournament = Tournament(
        name=name,
        settings=settings,
        teams=teams,
        matches=build_bracket(teams, settings.bracket_type),
    )
    tournament.current_round = current_round(tournament)
    logger.info(
        "Created %s tournament '%s': %d teams, %d matches",
        settings.bracket_type.value,
        name,
        len(teams),
        len(tournament.matches),
    )
    return tournament


def validate_score(score_a: int, score_b: int) -> None:
    for score in (score_a, score_b):
        if isinstance(score, bool) or not isinstance(score, int):
            raise InvalidScore(f"Scores must be integers, got {score!r}")
        if score < 0:
            raise InvalidScore(f"Scores must be non-negative, got {score}")
    if score_a == score_b:
        raise InvalidScore(f"Tied score {score_a}-{score_b}; a match needs a strict winner")


def check_reportable(tournament: Tournament, match_id: str) -> Match:
    """Return the match if a result may be reported for it, else raise."""
    match = tournament.find_match(match_id)
    if match is None:
        raise MatchNotFound(f"Match {match_id} not found")
    if match.is_bye:
        raise InvalidOperation(f"Match {match_id} is a bye; it needs no result")
    if match.state == MatchState.resolved:
        raise InvalidOperation(f"Match {match_id} is already resolved")
    if not (match.slot_a.is_bound and match.slot_b.is_bound):
        raise MatchNotReady(f"Match {match_id} is waiting on a prior match")
    return match


def report_result(tournament: Tournament, match_id: str, score_a: int, score_b: int) -> Tournament:
    """
    Record a match result and advance the bracket.

    Returns:
        A new Tournament with the outcome applied.

    Raises:
        MatchNotFound, InvalidOperation, MatchNotReady, InvalidScore:
            rejected before anything changes
        BracketCorruption: a destination slot already holds a different team
    """
    check_reportable(tournament, match_id)
    validate_score(score_a, score_b)

    state = tournament.model_copy(deep=True)
    match = state.find_match(match_id)
    winner = Side.A if score_a > score_b else Side.B
    match.outcome = MatchOutcome(winner=winner, score_a=score_a, score_b=score_b)
    match.state = MatchState.resolved

    _bind(state, match.winner_to, match.winner_team_id)
    if state.is_double_elimination:
        _bind(state, match.loser_to, match.loser_team_id)

    if match.bracket == BracketSide.final:
        _apply_final_rule(state, match)

    state.current_round = current_round(state)
    logger.info(
        "Tournament %s: %s resolved %d-%d, winner slot %s",
        state.id,
        match.id,
        score_a,
        score_b,
        winner.value,
    )
    return state


def _bind(state: Tournament, edge: Optional[SlotRef], team_id: Optional[str]) -> None:
    """Bind `team_id` into the slot `edge` points at. No-op without an edge."""
    if edge is None or team_id is None:
        return
    target = state.find_match(edge.match_id)
    if target is None:
        raise BracketCorruption(f"Edge points at missing match {edge.match_id}")
    if target.state == MatchState.resolved:
        raise BracketCorruption(f"Cannot bind {team_id} into resolved match {target.id}")

    slot = target.slot(edge.side)
    if slot.team_id is not None and slot.team_id != team_id:
        raise BracketCorruption(
            f"Slot {edge.side.value} of {target.id} already holds {slot.team_id}; refusing to overwrite with {team_id}"
        )
    slot.team_id = team_id
    target.refresh_state()


def _apply_final_rule(state: Tournament, final: Match) -> None:
    """
    Grand-final reset: slot B (losers-bracket champion) winning the first final
    means both finalists have one loss, so a second final is played.
    """
    if final.round != 1 or final.outcome.winner != Side.B:
        return
    if state.find_match(match_code(BracketSide.final, 2)) is not None:
        raise BracketCorruption("Bracket reset final already exists")
    reset = build_bracket_reset(final)
    state.matches.append(reset)
    logger.info("Tournament %s: losers-bracket champion won %s; bracket reset %s created", state.id, final.id, reset.id)
