"""Liveness and readiness checks."""

from typing import Literal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prepbank.core.errors import get_request_id
from prepbank.core.logging import get_logger
from prepbank.db.session import get_db

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])

CheckStatus = Literal["ok", "down"]


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class DependencyCheck(BaseModel):
    status: CheckStatus
    message: str | None = None


class ReadinessResponse(BaseModel):
    status: CheckStatus
    checks: dict[str, DependencyCheck]
    request_id: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(request: Request, db: Session = Depends(get_db)):
    """200 when the database answers, 503 otherwise."""
    try:
        db.execute(text("SELECT 1"))
        database = DependencyCheck(status="ok")
    except SQLAlchemyError as e:
        logger.warning("readiness_db_down", extra={"event": "readiness_db_down", "error": str(e)})
        database = DependencyCheck(status="down", message=type(e).__name__)

    body = ReadinessResponse(
        status=database.status,
        checks={"db": database},
        request_id=get_request_id(request),
    )
    if database.status == "down":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
