"""
Map domain errors raised by the services layer onto HTTP responses.
"""

import logging

from fastapi import HTTPException

from tourney.services.errors import (
    BracketCorruption,
    InsufficientCompetitors,
    InvalidOperation,
    InvalidScore,
    MatchNotFound,
    MatchNotReady,
    TournamentError,
    TournamentNotFound,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (TournamentNotFound, 404),
    (MatchNotFound, 404),
    (InvalidScore, 422),
    (InsufficientCompetitors, 422),
    (MatchNotReady, 409),
    (InvalidOperation, 409),
    (BracketCorruption, 500),
)


def http_error(exc: TournamentError) -> HTTPException:
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code == 500:
        logger.error("Tournament state error: %s", exc)
    return HTTPException(status_code=status_code, detail=str(exc))
