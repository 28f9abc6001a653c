import random
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from tourney.database import get_tournament_service
from tourney.models.team import Competitor, Team
from tourney.models.tournament import Tournament, TournamentSettings
from tourney.routes.matches import MatchResponse, match_responses
from tourney.services import tournament_queries as queries
from tourney.services.bracket_topology import match_sort_key
from tourney.services.errors import TournamentError
from tourney.services.tournament_service import TournamentService
from tourney.utils.http_errors import http_error

router = APIRouter()


class CompetitorIn(BaseModel):
    name: str
    id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class TournamentCreate(BaseModel):
    name: Optional[str] = None
    competitors: List[CompetitorIn]
    settings: TournamentSettings = TournamentSettings()
    # Fixes the shuffle when settings.randomize is set
    shuffle_seed: Optional[int] = None


class TeamResponse(BaseModel):
    id: str
    name: str
    seed: int
    members: List[Competitor]


class TournamentResponse(BaseModel):
    id: int
    name: str
    settings: TournamentSettings
    created_at: datetime
    total_teams: int
    total_rounds: int
    current_round: int
    is_complete: bool
    champion: Optional[TeamResponse] = None


class TournamentDetailResponse(TournamentResponse):
    teams: List[TeamResponse]
    matches: List[MatchResponse]


class StandingResponse(BaseModel):
    place: int
    team: TeamResponse
    losses: int


def team_response(team: Team) -> TeamResponse:
    return TeamResponse(id=team.id, name=team.name, seed=team.seed, members=team.members)


def tournament_response(tournament: Tournament) -> TournamentResponse:
    summary = queries.summarize(tournament)
    return TournamentResponse(
        id=tournament.id,
        name=tournament.name,
        settings=tournament.settings,
        created_at=tournament.created_at,
        total_teams=summary.total_teams,
        total_rounds=summary.total_rounds,
        current_round=summary.current_round,
        is_complete=summary.is_complete,
        champion=team_response(summary.champion) if summary.champion else None,
    )


def tournament_detail(tournament: Tournament) -> TournamentDetailResponse:
    ordered = sorted(tournament.matches, key=match_sort_key)
    return TournamentDetailResponse(
        **tournament_response(tournament).model_dump(),
        teams=[team_response(t) for t in tournament.teams],
        matches=match_responses(tournament, ordered),
    )


@router.post("/tournaments", response_model=TournamentDetailResponse, status_code=201)
def create_tournament(body: TournamentCreate, service: TournamentService = Depends(get_tournament_service)):
    """Seed the competitors into teams and lay out the full bracket"""
    competitors = [
        Competitor(id=c.id, name=c.name) if c.id else Competitor(name=c.name) for c in body.competitors
    ]
    rng = random.Random(body.shuffle_seed) if body.shuffle_seed is not None else None
    try:
        tournament = service.create_tournament(competitors, body.settings, name=body.name, rng=rng)
    except TournamentError as e:
        raise http_error(e) from e
    return tournament_detail(tournament)


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(service: TournamentService = Depends(get_tournament_service)):
    return [tournament_response(t) for t in service.list_tournaments()]


@router.get("/tournaments/{tournament_id}", response_model=TournamentDetailResponse)
def get_tournament(tournament_id: int, service: TournamentService = Depends(get_tournament_service)):
    try:
        tournament = service.get_tournament(tournament_id)
    except TournamentError as e:
        raise http_error(e) from e
    return tournament_detail(tournament)


@router.delete("/tournaments/{tournament_id}", status_code=204)
def reset_tournament(tournament_id: int, service: TournamentService = Depends(get_tournament_service)):
    try:
        service.reset(tournament_id)
    except TournamentError as e:
        raise http_error(e) from e
    return None


@router.get("/tournaments/{tournament_id}/standings", response_model=List[StandingResponse])
def get_standings(tournament_id: int, service: TournamentService = Depends(get_tournament_service)):
    """Final placings; empty until the tournament is complete"""
    try:
        tournament = service.get_tournament(tournament_id)
    except TournamentError as e:
        raise http_error(e) from e

    losses = queries.losses_by_team(tournament)
    return [
        StandingResponse(place=place, team=team_response(team), losses=losses.get(team.id, 0))
        for place, team in queries.final_standings(tournament)
    ]
