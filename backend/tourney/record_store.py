"""
Record store: the persistence adapter behind TournamentService.

A small key-value store keyed by entity type, backed by one SQLModel table
(StoredRecord, JSON payload). Contract:

    insert(entity_type, record) -> id
    select(entity_type, filter=None) -> [record]
    update(entity_type, filter, patch) -> bool
    delete(entity_type, filter=None) -> bool
    clear()

A filter is either an int (exact id lookup) or a dict whose fields must all be
equal; a None value in a dict filter matches both null and absent fields.
Ids are allocated per entity type as max + 1. Every returned record carries
its "id". Each call commits on its own; there are no multi-call transactions.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.engine import Engine
from sqlmodel import Session, func, select

from tourney.models.stored_record import StoredRecord
from tourney.utils.sql import scalar_int

logger = logging.getLogger(__name__)

RecordFilter = Union[int, Dict[str, Any], None]


def record_matches(record_id: int, data: Dict[str, Any], record_filter: RecordFilter) -> bool:
    if record_filter is None:
        return True
    if not isinstance(record_filter, dict):
        return record_id == record_filter
    for key, expected in record_filter.items():
        actual = record_id if key == "id" else data.get(key)
        if expected is None:
            if actual is not None:
                return False
        elif actual != expected:
            return False
    return True


class RecordStore:
    def __init__(self, bind: Engine):
        self.engine = bind
        # Serialises max+1 id allocation across threads
        self._insert_lock = threading.Lock()

    def _rows(self, session: Session, entity_type: str, record_filter: RecordFilter) -> List[StoredRecord]:
        query = select(StoredRecord).where(StoredRecord.entity_type == entity_type)
        if record_filter is not None and not isinstance(record_filter, dict):
            query = query.where(StoredRecord.record_id == record_filter)
        rows = session.exec(query.order_by(StoredRecord.record_id)).all()
        return [row for row in rows if record_matches(row.record_id, row.data, record_filter)]

    def insert(self, entity_type: str, record: Dict[str, Any]) -> int:
        with self._insert_lock, Session(self.engine) as session:
            current_max = session.exec(
                select(func.max(StoredRecord.record_id)).where(StoredRecord.entity_type == entity_type)
            ).one()
            record_id = scalar_int(current_max) + 1
            data = {k: v for k, v in record.items() if k != "id"}
            session.add(StoredRecord(entity_type=entity_type, record_id=record_id, data=data))
            session.commit()
        logger.debug("insert %s #%d", entity_type, record_id)
        return record_id

    def select(self, entity_type: str, record_filter: RecordFilter = None) -> List[Dict[str, Any]]:
        with Session(self.engine) as session:
            rows = self._rows(session, entity_type, record_filter)
            return [{**row.data, "id": row.record_id} for row in rows]

    def select_one(self, entity_type: str, record_filter: RecordFilter) -> Optional[Dict[str, Any]]:
        records = self.select(entity_type, record_filter)
        return records[0] if records else None

    def update(self, entity_type: str, record_filter: RecordFilter, patch: Dict[str, Any]) -> bool:
        changes = {k: v for k, v in patch.items() if k != "id"}
        with Session(self.engine) as session:
            rows = self._rows(session, entity_type, record_filter)
            for row in rows:
                # Reassign (not mutate) so the JSON column is flagged dirty
                row.data = {**row.data, **changes}
                row.updated_at = datetime.now(timezone.utc)
                session.add(row)
            if rows:
                session.commit()
        return bool(rows)

    def delete(self, entity_type: str, record_filter: RecordFilter = None) -> bool:
        with Session(self.engine) as session:
            rows = self._rows(session, entity_type, record_filter)
            for row in rows:
                session.delete(row)
            if rows:
                session.commit()
        if rows:
            logger.debug("delete %s: %d record(s)", entity_type, len(rows))
        return bool(rows)

    def clear(self) -> None:
        with Session(self.engine) as session:
            for row in session.exec(select(StoredRecord)).all():
                session.delete(row)
            session.commit()
        logger.info("Record store cleared")
