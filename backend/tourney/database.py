import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from tourney.services.tournament_service import TournamentService

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tourney.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
_echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=_echo,
    connect_args=_connect_args,
)


def init_db(bind: Engine = engine) -> None:
    """Create the record table (the only table the store needs)"""
    from tourney.models.stored_record import StoredRecord  # noqa: F401

    SQLModel.metadata.create_all(bind)


def get_tournament_service(request: Request) -> TournamentService:
    """FastAPI dependency: the service the app was started with"""
    return request.app.state.tournament_service
