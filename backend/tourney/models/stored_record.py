from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class StoredRecord(SQLModel, table=True):
    """One record of the key-value store, keyed by (entity_type, record_id)."""

    __table_args__ = (SAUniqueConstraint("entity_type", "record_id", name="uq_entity_record"),)

    pk: Optional[int] = Field(default=None, primary_key=True)
    entity_type: str = Field(index=True)  # "tournament" | "competitor" | "team" | "match"
    record_id: int  # per entity_type, max + 1
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
