"""
FastAPI application exposing the interval subtraction service.

Endpoints:
- POST /subtract: subtract one list of time intervals from another
- GET /health: liveness probe
"""

import logging
from typing import List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from timediff import __version__
from timediff.models import InvalidIntervalError, TimeInterval, format_time
from timediff.services.subtraction import IntervalSubtractionService

logger = logging.getLogger(__name__)


# MARK: - Pydantic Models for API


class IntervalPayload(BaseModel):
    start: str  # HH:MM[:SS]
    end: str  # HH:MM[:SS]


class SubtractionRequest(BaseModel):
    base: List[IntervalPayload]
    remove: List[IntervalPayload] = []


class SubtractionResponse(BaseModel):
    residuals: List[IntervalPayload]
    count: int


# MARK: - Helper Functions


def to_intervals(payloads: List[IntervalPayload], field: str) -> List[TimeInterval]:
    intervals = []
    for index, payload in enumerate(payloads):
        try:
            intervals.append(TimeInterval.parse(payload.start, payload.end))
        except InvalidIntervalError as e:
            raise HTTPException(status_code=422, detail=f"{field}[{index}]: {e}") from e
    return intervals


def to_payload(interval: TimeInterval) -> IntervalPayload:
    return IntervalPayload(start=format_time(interval.start), end=format_time(interval.end))


# MARK: - FastAPI App

app = FastAPI(title="timediff", version=__version__)


@app.post("/subtract", response_model=SubtractionResponse)
def subtract(request: SubtractionRequest):
    base = to_intervals(request.base, "base")
    remove = to_intervals(request.remove, "remove")
    residuals = IntervalSubtractionService.subtract(base, remove)
    logger.info(
        "Subtracted %d intervals from %d, %d residuals",
        len(remove),
        len(base),
        len(residuals),
    )
    return SubtractionResponse(
        residuals=[to_payload(interval) for interval in residuals],
        count=len(residuals),
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/")
def read_root():
    return {"message": "timediff interval subtraction service", "version": __version__}
