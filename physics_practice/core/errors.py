import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class GradingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationFailure(GradingError):
    """Malformed input; nothing was written."""

    status_code = status.HTTP_400_BAD_REQUEST


class TerminalStateConflict(GradingError):
    """The submission is already correct or out of attempts."""

    status_code = status.HTTP_409_CONFLICT


class EvaluationFailure(GradingError):
    """The problem's formula cannot be evaluated on its instance."""

    status_code = 422


async def grading_error_handler(request: Request, exc: GradingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def datastore_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Datastore failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GradingError, grading_error_handler)
    app.add_exception_handler(SQLAlchemyError, datastore_error_handler)
