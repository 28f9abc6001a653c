"""
Tournament Service: the object the presentation layer talks to.

Owns nothing but a record store and a lock per tournament. Each call loads the
tournament from the store, lets the (pure) progression engine compute the next
state, and writes the difference back:

- Calls for one tournament are serialised (threading.Lock per tournament id).
- A failed write restores the records already written and re-raises, so the
  store never holds half of a transition. The returned Tournament is only
  produced after the write succeeded.
"""

import logging
import random
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from tourney.models.match import Match
from tourney.models.team import Competitor, Team
from tourney.models.tournament import Tournament, TournamentSettings
from tourney.record_store import RecordStore
from tourney.services import progression_engine
from tourney.services.bracket_topology import match_sort_key
from tourney.services.errors import TournamentNotFound

logger = logging.getLogger(__name__)

TOURNAMENT = "tournament"
COMPETITOR = "competitor"
TEAM = "team"
MATCH = "match"


# -----------------------------------------------------------------------------
# Record mapping
# -----------------------------------------------------------------------------


def tournament_record(tournament: Tournament) -> Dict[str, Any]:
    return {
        "name": tournament.name,
        "bracket_type": tournament.settings.bracket_type.value,
        "grouping": tournament.settings.grouping.value,
        "randomize": tournament.settings.randomize,
        "current_round": tournament.current_round,
        "created_at": tournament.created_at.isoformat(),
    }


def team_record(tournament_id: int, team: Team) -> Dict[str, Any]:
    return {
        "tournament_id": tournament_id,
        "team_id": team.id,
        "name": team.name,
        "seed": team.seed,
        "member_ids": team.member_ids,
    }


def competitor_record(tournament_id: int, competitor: Competitor) -> Dict[str, Any]:
    return {"tournament_id": tournament_id, "competitor_id": competitor.id, "name": competitor.name}


def match_key(tournament_id: int, match_id: str) -> Dict[str, Any]:
    return {"tournament_id": tournament_id, "match_id": match_id}


def match_record(tournament_id: int, match: Match) -> Dict[str, Any]:
    data = match.model_dump(mode="json")
    data["match_id"] = data.pop("id")
    data["tournament_id"] = tournament_id
    return data


def match_from_record(record: Dict[str, Any]) -> Match:
    data = {k: v for k, v in record.items() if k not in ("id", "match_id", "tournament_id")}
    data["id"] = record["match_id"]
    return Match.model_validate(data)


class TournamentService:
    def __init__(self, store: RecordStore):
        self.store = store
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, tournament_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(tournament_id, threading.Lock())

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_tournament(self, tournament_id: int) -> Tournament:
        record = self.store.select_one(TOURNAMENT, tournament_id)
        if record is None:
            raise TournamentNotFound(f"Tournament {tournament_id} not found")

        owned = {"tournament_id": tournament_id}
        competitors = {
            r["competitor_id"]: Competitor(id=r["competitor_id"], name=r["name"])
            for r in self.store.select(COMPETITOR, owned)
        }
        teams = [
            Team(
                id=r["team_id"],
                name=r["name"],
                seed=r["seed"],
                members=[competitors[cid] for cid in r["member_ids"]],
            )
            for r in sorted(self.store.select(TEAM, owned), key=lambda r: r["seed"])
        ]
        matches = sorted((match_from_record(r) for r in self.store.select(MATCH, owned)), key=match_sort_key)

        return Tournament(
            id=tournament_id,
            name=record["name"],
            settings=TournamentSettings(
                bracket_type=record["bracket_type"],
                grouping=record["grouping"],
                randomize=record["randomize"],
            ),
            teams=teams,
            matches=matches,
            current_round=record["current_round"],
            created_at=record["created_at"],
        )

    def list_tournaments(self) -> List[Tournament]:
        return [self.get_tournament(r["id"]) for r in self.store.select(TOURNAMENT)]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_tournament(
        self,
        competitors: Sequence[Competitor],
        settings: TournamentSettings,
        name: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> Tournament:
        tournament = progression_engine.create_tournament(
            competitors, settings, name=name or "Tournament", rng=rng
        )
        tournament_id = self.store.insert(TOURNAMENT, tournament_record(tournament))
        try:
            for team in tournament.teams:
                for member in team.members:
                    self.store.insert(COMPETITOR, competitor_record(tournament_id, member))
                self.store.insert(TEAM, team_record(tournament_id, team))
            for match in tournament.matches:
                self.store.insert(MATCH, match_record(tournament_id, match))
        except Exception:
            logger.exception("Saving new tournament %s failed; removing partial records", tournament_id)
            self._delete_records(tournament_id)
            raise

        tournament.id = tournament_id
        return tournament

    def report_result(self, tournament_id: int, match_id: str, score_a: int, score_b: int) -> Tournament:
        """Apply one result. Engine errors and store errors propagate unchanged."""
        with self._lock_for(tournament_id):
            current = self.get_tournament(tournament_id)
            updated = progression_engine.report_result(current, match_id, score_a, score_b)
            self._persist_transition(current, updated)
            return updated

    def reset(self, tournament_id: int) -> None:
        """Delete one tournament and everything it owns."""
        with self._lock_for(tournament_id):
            if self.store.select_one(TOURNAMENT, tournament_id) is None:
                raise TournamentNotFound(f"Tournament {tournament_id} not found")
            self._delete_records(tournament_id)
        logger.info("Tournament %s reset", tournament_id)

    def clear(self) -> None:
        self.store.clear()
        with self._locks_guard:
            self._locks.clear()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _delete_records(self, tournament_id: int) -> None:
        owned = {"tournament_id": tournament_id}
        for entity_type in (MATCH, TEAM, COMPETITOR):
            self.store.delete(entity_type, owned)
        self.store.delete(TOURNAMENT, tournament_id)

    def _persist_transition(self, before: Tournament, after: Tournament) -> None:
        tournament_id = before.id
        previous = {m.id: m for m in before.matches}
        undo: List[Callable[[], Any]] = []

        try:
            for match in after.matches:
                old = previous.get(match.id)
                key = match_key(tournament_id, match.id)
                if old is None:
                    self.store.insert(MATCH, match_record(tournament_id, match))
                    undo.append(lambda key=key: self.store.delete(MATCH, key))
                elif old != match:
                    self.store.update(MATCH, key, match_record(tournament_id, match))
                    undo.append(lambda key=key, old=old: self.store.update(MATCH, key, match_record(tournament_id, old)))

            if after.current_round != before.current_round:
                self.store.update(TOURNAMENT, tournament_id, {"current_round": after.current_round})
                undo.append(
                    lambda: self.store.update(TOURNAMENT, tournament_id, {"current_round": before.current_round})
                )
        except Exception:
            logger.exception(
                "Persisting tournament %s failed; restoring %d record(s)", tournament_id, len(undo)
            )
            for step in reversed(undo):
                try:
                    step()
                except Exception:
                    logger.exception("Restore step failed for tournament %s", tournament_id)
            raise
