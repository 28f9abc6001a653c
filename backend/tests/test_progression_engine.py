"""Result reporting and knockout advancement."""
import pytest

from tourney.models.match import BracketSide, MatchState, Side
from tourney.models.tournament import BracketType, Grouping
from tourney.services import progression_engine
from tourney.services.errors import (
    BracketCorruption,
    InvalidOperation,
    InvalidScore,
    MatchNotFound,
    MatchNotReady,
)
from tourney.services.tournament_queries import champion, is_complete, matches_for_round, pending_matches

from tests.bracket_helpers import names_in, new_tournament, play, play_out


# ============================================================================
# Concrete scenarios
# ============================================================================


class TestKnockoutScenarios:
    def test_four_teams_standard_seeding(self):
        tournament = new_tournament(["T1", "T4", "T2", "T3"])

        first = matches_for_round(tournament, BracketSide.single, 1)
        assert [names_in(tournament, m) for m in first] == [["T1", "T3"], ["T4", "T2"]]

        tournament = play(tournament, "R1-1", "T1")
        tournament = play(tournament, "R1-2", "T4")
        final = tournament.find_match("R2-1")
        assert names_in(tournament, final) == ["T1", "T4"]
        assert final.state == MatchState.ready
        assert not is_complete(tournament)

        tournament = play(tournament, "R2-1", "T1")
        assert is_complete(tournament)
        assert champion(tournament).name == "T1"

    def test_three_teams_bye_advances_automatically(self):
        tournament = new_tournament(3)

        first = matches_for_round(tournament, BracketSide.single, 1)
        assert len(first) == 2
        bye = first[0]
        assert bye.is_bye and bye.state == MatchState.resolved
        assert [m.id for m in pending_matches(tournament)] == ["R1-2"]

        tournament = play(tournament, "R1-2", "T3")
        assert names_in(tournament, tournament.find_match("R2-1")) == ["T1", "T3"]

        tournament = play(tournament, "R2-1", "T3")
        assert champion(tournament).name == "T3"

    def test_doubles_teams_advance_as_units(self):
        tournament = new_tournament(["Ann", "Bob", "Cat", "Dan"], grouping=Grouping.doubles)
        assert [t.name for t in tournament.teams] == ["Ann & Bob", "Cat & Dan"]

        tournament = play(tournament, "R1-1", "Cat & Dan")
        assert champion(tournament).name == "Cat & Dan"

    @pytest.mark.parametrize("n", [2, 3, 5, 7, 8, 12, 17])
    def test_playing_everything_yields_one_champion(self, n):
        tournament = play_out(new_tournament(n))
        assert is_complete(tournament)
        assert champion(tournament) is not None
        assert all(m.state == MatchState.resolved for m in tournament.matches)

    @pytest.mark.parametrize("size", [4, 8, 16])
    def test_top_two_seeds_only_meet_in_the_final(self, size):
        # Higher seed (lower number) always wins
        tournament = new_tournament(size)
        seeds = {t.id: t.seed for t in tournament.teams}

        def favourite(match):
            return Side.A if seeds[match.slot_a.team_id] < seeds[match.slot_b.team_id] else Side.B

        tournament = play_out(tournament, favourite)
        for match in tournament.matches:
            pair = {seeds[match.slot_a.team_id], seeds[match.slot_b.team_id]}
            if pair == {1, 2}:
                assert match.winner_to is None
        assert champion(tournament).seed == 1


# ============================================================================
# Validation
# ============================================================================


class TestReportValidation:
    @pytest.mark.parametrize("score_a,score_b", [(3, 3), (0, 0), (-1, 2), (2, -1), (1.5, 0), ("2", 1), (True, 0)])
    def test_bad_scores_rejected_without_change(self, score_a, score_b):
        tournament = new_tournament(4)
        before = tournament.model_copy(deep=True)
        with pytest.raises(InvalidScore):
            progression_engine.report_result(tournament, "R1-1", score_a, score_b)
        assert tournament == before

    def test_unknown_match(self):
        with pytest.raises(MatchNotFound):
            progression_engine.report_result(new_tournament(4), "R9-9", 2, 1)

    def test_match_waiting_on_prior_result(self):
        with pytest.raises(MatchNotReady):
            progression_engine.report_result(new_tournament(4), "R2-1", 2, 1)

    def test_bye_cannot_be_reported(self):
        with pytest.raises(InvalidOperation):
            progression_engine.report_result(new_tournament(3), "R1-1", 2, 1)

    def test_second_report_rejected_and_state_kept(self):
        tournament = progression_engine.report_result(new_tournament(4), "R1-1", 2, 1)
        snapshot = tournament.model_copy(deep=True)
        with pytest.raises(InvalidOperation):
            progression_engine.report_result(tournament, "R1-1", 1, 2)
        assert tournament == snapshot

    def test_input_tournament_is_not_mutated(self):
        tournament = new_tournament(4)
        before = tournament.model_copy(deep=True)
        after = progression_engine.report_result(tournament, "R1-1", 2, 1)
        assert tournament == before
        assert after.find_match("R1-1").state == MatchState.resolved
        assert tournament.find_match("R1-1").state == MatchState.ready

    def test_outcome_records_scores_and_winner_side(self):
        tournament = progression_engine.report_result(new_tournament(4), "R1-2", 11, 21)
        outcome = tournament.find_match("R1-2").outcome
        assert (outcome.winner, outcome.score_a, outcome.score_b) == (Side.B, 11, 21)

    def test_occupied_destination_slot_is_corruption(self):
        tournament = new_tournament(4)
        final = tournament.find_match("R2-1")
        final.slot_a.team_id = "someone-else"
        with pytest.raises(BracketCorruption):
            progression_engine.report_result(tournament, "R1-1", 2, 1)

    def test_current_round_moves_when_round_finishes(self):
        tournament = new_tournament(4)
        assert tournament.current_round == 1
        tournament = play(tournament, "R1-1", "T1")
        assert tournament.current_round == 1
        tournament = play(tournament, "R1-2", "T2")
        assert tournament.current_round == 2


class TestCreateTournament:
    def test_knockout_defaults(self):
        tournament = new_tournament(5)
        assert tournament.settings.bracket_type == BracketType.knockout
        assert tournament.id is None
        assert tournament.current_round == 1
        assert {m.bracket for m in tournament.matches} == {BracketSide.single}
