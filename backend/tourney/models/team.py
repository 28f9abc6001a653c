from typing import List
from uuid import uuid4

from sqlmodel import Field, SQLModel


def new_id() -> str:
    return uuid4().hex


class Competitor(SQLModel):
    id: str = Field(default_factory=new_id)
    name: str


class Team(SQLModel):
    """One or two competitors playing as a unit (singles = 1, doubles = 2)."""

    id: str = Field(default_factory=new_id)
    name: str
    seed: int  # 1-based position after grouping (and shuffling, if requested)
    members: List[Competitor] = Field(default_factory=list)

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]
