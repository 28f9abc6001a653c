"""
Bracket Topology: static shape of a knockout or double-elimination bracket.

The whole Bracket Graph is laid out at creation: every match that can be known
up front exists from the start, wired with `winner_to` / `loser_to` edges and
matching slot sources. Only the bracket-reset final (GF2) is created later, by
the progression engine, because it exists only if the losers-bracket champion
wins the first final.

Knockout:
    Round 1 comes from seeding (byes included). Round r+1 match k is fed by the
    winners of round r matches 2k-1 and 2k.

Double elimination (standard construction):
    WB = knockout layout tagged "winners" (k rounds).
    LB round 1 pairs the losers of WB round-1 matches 2j-1 and 2j.
    For i in 1..k-1:
        LB round 2i   : LB survivor j (slot A) vs loser of WB round i+1 match j (slot B)
        LB round 2i+1 : LB round 2i survivors paired (only while i < k-1)
    So losers of WB round r > 1 enter LB round 2*(r-1), and the LB has 2*(k-1) rounds.
    GF1: WB champion (slot A) vs LB champion (slot B).

Byes:
    A feed that can never carry a team (the loser of a bye) is "absent".
    A match with one absent feed becomes a resolved bye when the other team is
    already known, otherwise it is collapsed: the live feed is wired straight to
    the next slot. A match with two absent feeds is never created.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from tourney.models.match import (
    BracketSide,
    Match,
    MatchSlot,
    MatchState,
    Side,
    SlotRef,
    SlotSource,
    SourceRole,
    match_code,
)
from tourney.models.team import Team
from tourney.models.tournament import BracketType
from tourney.services.seeding import bracket_size, bye_match, place_byes

# Rendering / iteration order of brackets
BRACKET_ORDER: Dict[BracketSide, int] = {
    BracketSide.single: 0,
    BracketSide.winners: 0,
    BracketSide.losers: 1,
    BracketSide.final: 2,
}


def round_count(team_count: int) -> int:
    """ceil(log2(team_count)): rounds of knockout play (winners-bracket rounds)."""
    return bracket_size(team_count).bit_length() - 1


def next_round_match_count(matches_in_round: int) -> int:
    return (matches_in_round + 1) // 2


def losers_round_count(size: int) -> int:
    """2 * (log2(size) - 1) for a power-of-two winners bracket."""
    if size < 4:
        return 0
    return 2 * (size.bit_length() - 2)


def primary_bracket(bracket_type: BracketType) -> BracketSide:
    return BracketSide.winners if bracket_type == BracketType.double_elimination else BracketSide.single


def match_sort_key(match: Match) -> Tuple[int, int, int]:
    return (BRACKET_ORDER[match.bracket], match.round, match.position)


@dataclass(frozen=True)
class _Feed:
    """What a slot will receive: a known team, an upstream winner/loser, or nobody."""

    team_id: Optional[str] = None
    source: Optional[SlotSource] = None

    @property
    def is_absent(self) -> bool:
        return self.team_id is None and self.source is None


ABSENT = _Feed()


def _winner_of(match: Match, team_id: Optional[str] = None) -> _Feed:
    return _Feed(team_id=team_id, source=SlotSource(match_id=match.id, role=SourceRole.WINNER))


def _loser_of(match: Match) -> _Feed:
    return _Feed(source=SlotSource(match_id=match.id, role=SourceRole.LOSER))


class _GraphBuilder:
    def __init__(self) -> None:
        self.matches: Dict[str, Match] = {}

    def add(self, match: Match) -> None:
        self.matches[match.id] = match

    def wire(self, feed: _Feed, target: Match, side: Side) -> None:
        """Fill `side` of `target` from `feed` and record the upstream edge."""
        slot = target.slot(side)
        slot.team_id = feed.team_id
        slot.source = feed.source
        if feed.source is None:
            return
        upstream = self.matches[feed.source.match_id]
        edge = SlotRef(match_id=target.id, side=side)
        if feed.source.role == SourceRole.WINNER:
            upstream.winner_to = edge
        else:
            upstream.loser_to = edge

    def combine(
        self,
        bracket: BracketSide,
        round_number: int,
        position: int,
        feed_a: _Feed,
        feed_b: _Feed,
    ) -> Tuple[_Feed, _Feed]:
        """Place one match (or bye / collapse) and return its (winner, loser) feeds."""
        if feed_a.is_absent and feed_b.is_absent:
            return ABSENT, ABSENT

        code = match_code(bracket, round_number, position)
        if feed_a.is_absent or feed_b.is_absent:
            live = feed_b if feed_a.is_absent else feed_a
            if live.team_id is None:
                return live, ABSENT
            bye = bye_match(code, bracket, round_number, position, live.team_id)
            self.add(bye)
            self.wire(live, bye, Side.A)
            return _winner_of(bye, live.team_id), ABSENT

        match = Match(id=code, bracket=bracket, round=round_number, position=position)
        self.add(match)
        self.wire(feed_a, match, Side.A)
        self.wire(feed_b, match, Side.B)
        match.refresh_state()
        return _winner_of(match), _loser_of(match)

    def first_round(self, teams: Sequence[Team], bracket: BracketSide) -> Tuple[List[_Feed], List[_Feed]]:
        positions = bracket_size(len(teams)) // 2
        winners: List[_Feed] = [ABSENT] * positions
        losers: List[_Feed] = [ABSENT] * positions
        for match in place_byes(teams, bracket):
            self.add(match)
            if match.is_bye:
                winners[match.position - 1] = _winner_of(match, match.slot_a.team_id)
            else:
                winners[match.position - 1] = _winner_of(match)
                losers[match.position - 1] = _loser_of(match)
        return winners, losers

    def elimination_rounds(
        self, teams: Sequence[Team], bracket: BracketSide
    ) -> Tuple[_Feed, Dict[int, List[_Feed]]]:
        """Lay out a knockout bracket. Returns the champion feed and loser feeds per round."""
        feeds, first_losers = self.first_round(teams, bracket)
        losers_by_round: Dict[int, List[_Feed]] = {1: first_losers}

        round_number = 1
        while len(feeds) > 1:
            round_number += 1
            next_feeds: List[_Feed] = []
            round_losers: List[_Feed] = []
            for position in range(1, next_round_match_count(len(feeds)) + 1):
                i = 2 * (position - 1)
                feed_b = feeds[i + 1] if i + 1 < len(feeds) else ABSENT
                winner, loser = self.combine(bracket, round_number, position, feeds[i], feed_b)
                next_feeds.append(winner)
                round_losers.append(loser)
            losers_by_round[round_number] = round_losers
            feeds = next_feeds
        return feeds[0], losers_by_round

    def losers_rounds(self, losers_by_round: Dict[int, List[_Feed]]) -> _Feed:
        """Lay out the losers bracket. Returns the losers-bracket champion feed."""
        winners_rounds = len(losers_by_round)
        if winners_rounds == 1:
            # Two teams: the only WB loser goes straight to the grand final
            return losers_by_round[1][0]

        bracket = BracketSide.losers
        round_number = 1
        feeds = self._pair_off(bracket, round_number, losers_by_round[1])

        for wb_round in range(2, winners_rounds + 1):
            round_number += 1
            drops = losers_by_round[wb_round]
            feeds = [
                self.combine(bracket, round_number, position, survivor, drop)[0]
                for position, (survivor, drop) in enumerate(zip(feeds, drops), start=1)
            ]
            if wb_round < winners_rounds:
                round_number += 1
                feeds = self._pair_off(bracket, round_number, feeds)
        return feeds[0]

    def _pair_off(self, bracket: BracketSide, round_number: int, feeds: List[_Feed]) -> List[_Feed]:
        return [
            self.combine(bracket, round_number, position, feeds[i], feeds[i + 1])[0]
            for position, i in enumerate(range(0, len(feeds), 2), start=1)
        ]

    def ordered(self) -> List[Match]:
        return sorted(self.matches.values(), key=match_sort_key)


def build_bracket(teams: Sequence[Team], bracket_type: BracketType) -> List[Match]:
    """
    Lay out every match of a new tournament for `teams` (in seed order).

    Bye matches are resolved and their teams already bound downstream.
    """
    builder = _GraphBuilder()
    if bracket_type == BracketType.knockout:
        builder.elimination_rounds(teams, BracketSide.single)
        return builder.ordered()

    wb_champion, losers_by_round = builder.elimination_rounds(teams, BracketSide.winners)
    lb_champion = builder.losers_rounds(losers_by_round)
    builder.combine(BracketSide.final, 1, 1, wb_champion, lb_champion)
    return builder.ordered()


def build_bracket_reset(first_final: Match) -> Match:
    """
    Second final (bracket reset) after the losers-bracket champion won GF1.

    Both finalists are rebound in the slots they held in GF1; GF1 gets edges into it.
    """
    reset = Match(
        id=match_code(BracketSide.final, 2),
        bracket=BracketSide.final,
        round=2,
        position=1,
        slot_a=MatchSlot(
            team_id=first_final.slot_a.team_id,
            source=SlotSource(match_id=first_final.id, role=SourceRole.LOSER),
        ),
        slot_b=MatchSlot(
            team_id=first_final.slot_b.team_id,
            source=SlotSource(match_id=first_final.id, role=SourceRole.WINNER),
        ),
        state=MatchState.ready,
    )
    first_final.winner_to = SlotRef(match_id=reset.id, side=Side.B)
    first_final.loser_to = SlotRef(match_id=reset.id, side=Side.A)
    return reset
