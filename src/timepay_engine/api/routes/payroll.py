"""Payroll report endpoints."""

from fastapi import APIRouter, Response, status

from timepay_engine.api.dependencies import Aggregator
from timepay_engine.api.schemas import ErrorResponse, PayrollReportRequest, PayrollReportResponse
from timepay_engine.models import PayrollReport
from timepay_engine.services.export_service import export_payroll_csv

router = APIRouter(prefix="/payroll", tags=["payroll"])


def _build(aggregator: Aggregator, payload: PayrollReportRequest) -> PayrollReport:
    return aggregator.build_report(
        employees=[e.to_domain() for e in payload.employees],
        punches=[p.to_domain() for p in payload.punches],
        tip_allocations=[a.to_domain() for a in payload.tip_allocations],
        period_start=payload.period_start,
        period_end=payload.period_end,
        manual_payments=[m.to_domain() for m in payload.manual_payments],
        tip_payouts=[t.to_domain() for t in payload.tip_payouts],
        tz=payload.tzinfo(),
    )


@router.post(
    "/report",
    response_model=PayrollReportResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
async def payroll_report(
    aggregator: Aggregator, payload: PayrollReportRequest
) -> PayrollReportResponse:
    """Compute payroll for every employee over a period.

    Employees with a broken contract come back as error rows; the rest of the
    report is still computed.
    """
    report = _build(aggregator, payload)
    return PayrollReportResponse.model_validate(report)


@router.post(
    "/report.csv",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, 422: {"model": ErrorResponse}},
)
async def payroll_report_csv(aggregator: Aggregator, payload: PayrollReportRequest) -> Response:
    """Compute payroll and return it as a CSV export."""
    report = _build(aggregator, payload)
    filename = f"payroll_{payload.period_start}_{payload.period_end}.csv"
    return Response(
        content=export_payroll_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
