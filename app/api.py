"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from app.schemas import (
    ErrorResponse,
    IngestErrorResponse,
    IngestResponse,
    ReadingIn,
    ReadingOut,
    StatsOut,
)
from datastore.sql_store import PersistenceError
from services.ingestion import IngestionService
from services.queries import QueryService

router = APIRouter()


def get_ingestion(request: Request) -> IngestionService:
    return request.app.state.ingestion


def get_queries(request: Request) -> QueryService:
    return request.app.state.queries


@router.post(
    "/api/data",
    response_model=IngestResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": IngestErrorResponse}},
    summary="Store a reading and push it to live subscribers.",
)
async def create_reading(
    payload: ReadingIn,
    ingestion: IngestionService = Depends(get_ingestion),
) -> Union[IngestResponse, JSONResponse]:
    try:
        reading = await ingestion.ingest(payload)
    except PersistenceError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=IngestErrorResponse(error=str(exc)).model_dump(),
        )
    return IngestResponse(id=reading.id)


@router.get(
    "/api/data",
    response_model=List[ReadingOut],
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
    summary="List the most recent readings, newest first.",
)
async def list_readings(
    limit: Optional[str] = Query(None, description="Maximum rows; defaults to 100."),
    queries: QueryService = Depends(get_queries),
) -> Union[List[ReadingOut], JSONResponse]:
    try:
        readings = await queries.recent(limit)
    except PersistenceError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=str(exc)).model_dump(),
        )
    return [ReadingOut.from_reading(reading) for reading in readings]


@router.get(
    "/api/stats",
    response_model=StatsOut,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
    summary="Aggregate counts over every stored reading.",
)
async def get_stats(
    queries: QueryService = Depends(get_queries),
) -> Union[StatsOut, JSONResponse]:
    try:
        stats = await queries.stats()
    except PersistenceError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=str(exc)).model_dump(),
        )
    return StatsOut.from_stats(stats)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
