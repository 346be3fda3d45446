"""HTTP route definitions for inspecting the running simulator."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import ReadingPayload, SimulatorStats
from services.errors import UnknownLocationError
from services.simulator import SimulatorService, build_default_simulator

router = APIRouter()


def get_simulator() -> SimulatorService:
    return build_default_simulator()


@router.get(
    "/sensors",
    response_model=List[ReadingPayload],
    summary="Current reading of every simulated sensor.",
)
async def list_sensors(
    simulator: SimulatorService = Depends(get_simulator),
) -> List[ReadingPayload]:
    return [ReadingPayload.from_reading(reading) for reading in simulator.registry.snapshot_all()]


@router.get(
    "/sensors/{location}",
    response_model=ReadingPayload,
    summary="Current reading of one sensor.",
)
async def get_sensor(
    location: str,
    simulator: SimulatorService = Depends(get_simulator),
) -> ReadingPayload:
    try:
        reading = simulator.registry.get(location)
    except UnknownLocationError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return ReadingPayload.from_reading(reading)


@router.get(
    "/stats",
    response_model=SimulatorStats,
    summary="Broadcast, listen and registry counters.",
)
async def get_stats(
    simulator: SimulatorService = Depends(get_simulator),
) -> SimulatorStats:
    return simulator.stats()


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
    return {"status": "ok", "detail": "See /sensors for current readings."}
