"""
Match endpoints: listing, the pending (playable) queue and result reporting.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tourney.database import get_tournament_service
from tourney.models.match import BracketSide, Match, MatchState
from tourney.models.team import Team
from tourney.models.tournament import Tournament
from tourney.services import tournament_queries as queries
from tourney.services.bracket_topology import losers_round_count, round_count
from tourney.services.errors import TournamentError
from tourney.services.seeding import bracket_size
from tourney.services.tournament_service import TournamentService
from tourney.utils.display import match_title, round_name, slot_label
from tourney.utils.http_errors import http_error

router = APIRouter()


class ResultReport(BaseModel):
    score_a: int
    score_b: int


class MatchResponse(BaseModel):
    id: str
    bracket: BracketSide
    round: int
    position: int
    round_name: str
    title: str
    state: MatchState
    is_bye: bool
    team_a_id: Optional[str] = None
    team_b_id: Optional[str] = None
    label_a: str
    label_b: str
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    winner_team_id: Optional[str] = None


def _round_name(tournament: Tournament, match: Match) -> str:
    size = bracket_size(len(tournament.teams))
    if match.bracket == BracketSide.losers:
        total = losers_round_count(size)
    else:
        total = round_count(len(tournament.teams))
    return round_name(match.bracket, match.round, total, bracket_size=size)


def match_response(tournament: Tournament, match: Match, teams: Dict[str, Team]) -> MatchResponse:
    outcome = match.outcome
    return MatchResponse(
        id=match.id,
        bracket=match.bracket,
        round=match.round,
        position=match.position,
        round_name=_round_name(tournament, match),
        title=match_title(match, teams),
        state=match.state,
        is_bye=match.is_bye,
        team_a_id=match.slot_a.team_id,
        team_b_id=match.slot_b.team_id,
        label_a=slot_label(match.slot_a, teams),
        label_b=slot_label(match.slot_b, teams),
        score_a=outcome.score_a if outcome else None,
        score_b=outcome.score_b if outcome else None,
        winner_team_id=match.winner_team_id,
    )


def match_responses(tournament: Tournament, matches: List[Match]) -> List[MatchResponse]:
    teams = queries.team_by_id(tournament)
    return [match_response(tournament, m, teams) for m in matches]


def _load(service: TournamentService, tournament_id: int) -> Tournament:
    try:
        return service.get_tournament(tournament_id)
    except TournamentError as e:
        raise http_error(e) from e


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(
    tournament_id: int,
    bracket: Optional[BracketSide] = None,
    round: Optional[int] = None,
    service: TournamentService = Depends(get_tournament_service),
):
    """All matches in bracket order, optionally narrowed to one bracket and/or round"""
    tournament = _load(service, tournament_id)
    if round is not None and bracket is None:
        raise HTTPException(status_code=422, detail="round filter requires bracket")

    if bracket is None:
        matches = [m for side in BracketSide for m in queries.matches_in_bracket(tournament, side)]
    elif round is None:
        matches = queries.matches_in_bracket(tournament, bracket)
    else:
        matches = queries.matches_for_round(tournament, bracket, round)
    return match_responses(tournament, matches)


@router.get("/tournaments/{tournament_id}/matches/pending", response_model=List[MatchResponse])
def list_pending_matches(tournament_id: int, service: TournamentService = Depends(get_tournament_service)):
    tournament = _load(service, tournament_id)
    return match_responses(tournament, queries.pending_matches(tournament))


@router.post("/tournaments/{tournament_id}/matches/{match_id}/result", response_model=MatchResponse)
def report_result(
    tournament_id: int,
    match_id: str,
    report: ResultReport,
    service: TournamentService = Depends(get_tournament_service),
):
    """Record a score. The winner (and, in double elimination, the loser) advances."""
    try:
        tournament = service.report_result(tournament_id, match_id, report.score_a, report.score_b)
    except TournamentError as e:
        raise http_error(e) from e

    return match_response(tournament, tournament.find_match(match_id), queries.team_by_id(tournament))
