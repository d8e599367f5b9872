"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from app.schemas import ReadingFormat, ReadingResponse
from services.conversion import as_utc, readings_to_text
from services.errors import ConversionError, DatabaseError, NotFoundError, TemperatureError
from services.readings import ReadingStore, build_default_store

router = APIRouter()
temperature_router = APIRouter(prefix="/temperature", tags=["temperature"])


def get_store() -> ReadingStore:
    return build_default_store()


def _http_error(exc: TemperatureError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, DatabaseError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, ConversionError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


@temperature_router.get(
    "/",
    response_model=List[ReadingResponse],
    summary="List every stored temperature reading.",
)
def list_readings(
    format: ReadingFormat = Query(ReadingFormat.json, description="Response representation."),
    store: ReadingStore = Depends(get_store),
) -> Union[List[ReadingResponse], PlainTextResponse]:
    try:
        readings = store.all_readings()
    except TemperatureError as exc:
        raise _http_error(exc) from exc
    if format is ReadingFormat.text:
        return PlainTextResponse(readings_to_text(readings))
    return [ReadingResponse.from_reading(reading) for reading in readings]


@temperature_router.get(
    "/latest",
    response_model=ReadingResponse,
    summary="Fetch the most recent temperature reading.",
)
def latest_reading(
    format: ReadingFormat = Query(ReadingFormat.json, description="Response representation."),
    store: ReadingStore = Depends(get_store),
) -> Union[ReadingResponse, PlainTextResponse]:
    try:
        reading = store.latest_reading()
    except TemperatureError as exc:
        raise _http_error(exc) from exc
    if format is ReadingFormat.text:
        return PlainTextResponse(
            f"{reading.centigrade} centigrade, at {as_utc(reading.timestamp).isoformat()}"
        )
    return ReadingResponse.from_reading(reading)


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
    return {"status": "ok", "detail": "See /temperature/ for readings."}


router.include_router(temperature_router)
