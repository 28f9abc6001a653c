"""
Seeding: competitors -> ordered Teams -> first-round matches.

Deterministic unless `randomize` is requested; the shuffle is a uniform
Fisher-Yates (random.Random.shuffle) so every permutation is equally likely.
"""

import logging
import random
from typing import List, Optional, Sequence

from tourney.models.match import BracketSide, Match, MatchOutcome, MatchSlot, MatchState, Side, match_code
from tourney.models.team import Competitor, Team
from tourney.models.tournament import Grouping
from tourney.services.errors import InsufficientCompetitors
from tourney.utils.display import team_display_name

logger = logging.getLogger(__name__)

MIN_TEAMS = 2


def seed_teams(
    competitors: Sequence[Competitor],
    grouping: Grouping,
    randomize: bool = False,
    rng: Optional[random.Random] = None,
) -> List[Team]:
    """
    Group competitors into Teams, seeded 1..n in list order.

    Singles: one Team per competitor.
    Doubles: consecutive pairs; a trailing unpaired competitor becomes a singleton Team.

    Raises:
        InsufficientCompetitors: fewer than 2 competitors, or fewer than 2 Teams after grouping
    """
    if len(competitors) < MIN_TEAMS:
        raise InsufficientCompetitors(f"Need at least {MIN_TEAMS} competitors, got {len(competitors)}")

    ordered = list(competitors)
    if randomize:
        (rng or random.Random()).shuffle(ordered)

    size = 2 if grouping == Grouping.doubles else 1
    groups = [ordered[i:i + size] for i in range(0, len(ordered), size)]
    if len(groups) < MIN_TEAMS:
        raise InsufficientCompetitors(
            f"{len(competitors)} competitors make {len(groups)} {grouping.value} team(s); need {MIN_TEAMS}"
        )
    if len(groups[-1]) < size:
        logger.info("Odd competitor count for doubles; %s plays as a singleton team", groups[-1][0].name)

    return [
        Team(name=team_display_name(members), seed=seed, members=members)
        for seed, members in enumerate(groups, start=1)
    ]


def bracket_size(team_count: int) -> int:
    """Next power of two >= team_count."""
    size = 1
    while size < team_count:
        size *= 2
    return size


def standard_seed_order(size: int) -> List[int]:
    """
    Seeds in bracket-position order for a power-of-two bracket.

    For 8: [1, 8, 4, 5, 2, 7, 3, 6] -> 1v8, 4v5, 2v7, 3v6.
    Seed s meets seed size+1-s in round 1; seeds 1 and 2 sit in opposite halves.
    """
    if size < 2 or size & (size - 1):
        raise ValueError(f"bracket size must be a power of two >= 2, got {size}")
    order = [1]
    while len(order) < size:
        span = 2 * len(order) + 1
        order = [s for seed in order for s in (seed, span - seed)]
    return order


def place_byes(teams: Sequence[Team], bracket: BracketSide = BracketSide.single) -> List[Match]:
    """
    First-round matches for `teams` (already in seed order).

    size/2 matches. A position whose opponent seed exceeds the team count is a bye:
    both slots hold the same Team and the outcome is resolved at creation.
    """
    if len(teams) < MIN_TEAMS:
        raise InsufficientCompetitors(f"Need at least {MIN_TEAMS} teams, got {len(teams)}")

    by_seed = {i: team for i, team in enumerate(teams, start=1)}
    order = standard_seed_order(bracket_size(len(teams)))

    matches: List[Match] = []
    for position, i in enumerate(range(0, len(order), 2), start=1):
        team_a = by_seed.get(order[i])
        team_b = by_seed.get(order[i + 1])
        code = match_code(bracket, 1, position)
        if team_a is None and team_b is None:
            # Cannot happen with standard seeding (byes only meet top seeds)
            continue
        if team_a is None or team_b is None:
            matches.append(bye_match(code, bracket, 1, position, (team_a or team_b).id))
            continue
        matches.append(
            Match(
                id=code,
                bracket=bracket,
                round=1,
                position=position,
                slot_a=MatchSlot(team_id=team_a.id),
                slot_b=MatchSlot(team_id=team_b.id),
                state=MatchState.ready,
            )
        )
    return matches


def bye_match(code: str, bracket: BracketSide, round_number: int, position: int, team_id: str) -> Match:
    return Match(
        id=code,
        bracket=bracket,
        round=round_number,
        position=position,
        slot_a=MatchSlot(team_id=team_id),
        slot_b=MatchSlot(team_id=team_id),
        state=MatchState.resolved,
        is_bye=True,
        outcome=MatchOutcome(winner=Side.A),
    )
