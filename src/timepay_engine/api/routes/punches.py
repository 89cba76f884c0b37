"""Punch normalization and session endpoints."""

from fastapi import APIRouter, status

from timepay_engine.api.dependencies import AppSettings
from timepay_engine.api.schemas import (
    DailyHoursResponse,
    ErrorResponse,
    NormalizedPunchResponse,
    SessionResponse,
    SessionsRequest,
    SessionsResponse,
)
from timepay_engine.calculators.normalizer import NoiseFilterConfig, summarize_noise
from timepay_engine.calculators.sessions import (
    SessionPolicy,
    calculate_daily_hours,
    process_punches,
)

router = APIRouter(prefix="/punches", tags=["punches"])


@router.post(
    "/sessions",
    response_model=SessionsResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
async def rebuild_sessions(settings: AppSettings, payload: SessionsRequest) -> SessionsResponse:
    """Flag noise in a punch stream and rebuild its work sessions."""
    result = process_punches(
        [p.to_domain() for p in payload.punches],
        config=NoiseFilterConfig.from_settings(settings),
        policy=SessionPolicy.from_settings(settings),
        tz=payload.tzinfo(),
    )
    return SessionsResponse(
        normalized=[NormalizedPunchResponse.from_domain(p) for p in result.normalized],
        sessions=[SessionResponse.from_domain(s) for s in result.sessions],
        daily_hours=[
            DailyHoursResponse.from_domain(d) for d in calculate_daily_hours(result.sessions)
        ],
        noise_count=result.noise_count,
        noise_by_reason=summarize_noise(result.normalized),
        anomaly_count=result.anomaly_count,
    )
