"""Double elimination: loser routing, grand final and bracket reset."""
import pytest

from tourney.models.match import BracketSide, MatchState, Side, SourceRole
from tourney.models.tournament import BracketType
from tourney.services import progression_engine
from tourney.services.errors import InvalidOperation
from tourney.services.tournament_queries import (
    champion,
    is_complete,
    losses_by_team,
    matches_in_bracket,
    pending_matches,
)

from tests.bracket_helpers import names_in, new_tournament, play, play_out

DE = BracketType.double_elimination


@pytest.fixture
def four_team_final():
    """4-team double elimination played up to the first grand final: T1 (0 losses) v T2 (1 loss)"""
    tournament = new_tournament(4, DE)
    tournament = play(tournament, "W1-1", "T1")  # T1 v T4
    tournament = play(tournament, "W1-2", "T2")  # T2 v T3
    tournament = play(tournament, "W2-1", "T1")
    tournament = play(tournament, "L1-1", "T4")  # T4 v T3
    tournament = play(tournament, "L2-1", "T2")  # T4 v T2
    return tournament


class TestLoserRouting:
    def test_first_round_losers_meet_in_losers_round_one(self):
        tournament = new_tournament(4, DE)
        tournament = play(tournament, "W1-1", "T1")
        tournament = play(tournament, "W1-2", "T2")
        lb = tournament.find_match("L1-1")
        assert names_in(tournament, lb) == ["T4", "T3"]
        assert lb.state == MatchState.ready

    def test_winners_final_loser_drops_into_losers_final(self, four_team_final):
        lb_final = four_team_final.find_match("L2-1")
        assert names_in(four_team_final, lb_final) == ["T4", "T2"]

    def test_second_loss_eliminates(self, four_team_final):
        losses = {t.name: n for t, n in zip(four_team_final.teams, losses_by_team(four_team_final).values())}
        assert losses == {"T1": 0, "T2": 1, "T3": 2, "T4": 2}
        playing = {tid for m in pending_matches(four_team_final) for tid in (m.slot_a.team_id, m.slot_b.team_id)}
        eliminated = {t.id for t in four_team_final.teams if t.name in ("T3", "T4")}
        assert not playing & eliminated

    def test_losers_bracket_loser_has_nowhere_to_go(self):
        tournament = new_tournament(4, DE)
        tournament = play(tournament, "W1-1", "T1")
        tournament = play(tournament, "W1-2", "T2")
        tournament = play(tournament, "L1-1", "T3")
        assert tournament.find_match("L1-1").loser_to is None
        assert tournament.find_match("L2-1").slot_a.team_id == tournament.teams[2].id  # T3


class TestGrandFinal:
    def test_grand_final_pairs_the_two_bracket_champions(self, four_team_final):
        gf = four_team_final.find_match("GF1")
        assert names_in(four_team_final, gf) == ["T1", "T2"]
        assert [m.id for m in pending_matches(four_team_final)] == ["GF1"]

    def test_winners_champion_takes_it_without_reset(self, four_team_final):
        tournament = play(four_team_final, "GF1", "T1")
        assert is_complete(tournament)
        assert champion(tournament).name == "T1"
        assert tournament.find_match("GF2") is None

    def test_losers_champion_win_forces_reset(self, four_team_final):
        tournament = play(four_team_final, "GF1", "T2")
        assert not is_complete(tournament)
        assert champion(tournament) is None

        reset = tournament.find_match("GF2")
        assert reset is not None
        assert reset.bracket == BracketSide.final and reset.round == 2
        assert names_in(tournament, reset) == ["T1", "T2"]
        assert reset.state == MatchState.ready
        assert reset.slot_a.source.role == SourceRole.LOSER
        assert reset.slot_b.source.role == SourceRole.WINNER
        assert [m.id for m in pending_matches(tournament)] == ["GF2"]

    @pytest.mark.parametrize("winner", ["T1", "T2"])
    def test_reset_decides_the_champion(self, four_team_final, winner):
        tournament = play(four_team_final, "GF1", "T2")
        tournament = play(tournament, "GF2", winner)
        assert is_complete(tournament)
        assert champion(tournament).name == winner
        assert len(matches_in_bracket(tournament, BracketSide.final)) == 2

    def test_reset_is_not_created_twice(self, four_team_final):
        tournament = play(four_team_final, "GF1", "T2")
        tournament = play(tournament, "GF2", "T2")
        with pytest.raises(InvalidOperation):
            progression_engine.report_result(tournament, "GF1", 0, 5)
        assert len(matches_in_bracket(tournament, BracketSide.final)) == 2


class TestFullRuns:
    @pytest.mark.parametrize("n", [2, 3, 4, 5, 6, 7, 8, 9, 13, 16])
    @pytest.mark.parametrize("side", [Side.A, Side.B])
    def test_everything_resolves_to_one_champion(self, n, side):
        tournament = play_out(new_tournament(n, DE), lambda m: side)
        assert is_complete(tournament)
        assert champion(tournament) is not None
        assert all(m.state == MatchState.resolved for m in tournament.matches)

        playable = [m for m in tournament.matches if not m.is_bye]
        reset_played = tournament.find_match("GF2") is not None
        assert len(playable) == 2 * n - 2 + (1 if reset_played else 0)

        losses = losses_by_team(tournament)
        winner = champion(tournament).id
        assert all(count == 2 for tid, count in losses.items() if tid != winner)
        assert losses[winner] <= 1
