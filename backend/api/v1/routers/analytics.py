"""
Analytics Router — Derived reports over clients, jobs, payments, services, and reviews.

Endpoints:
  GET /api/v1/analytics/                 — every report, keyed by name
  GET /api/v1/analytics/{report_name}    — one report

Report names: payment-alerts, monthly-income, yearly-income, client-reliability,
completion-time, service-demand, service-revenue, high-value-projects,
review-sentiment, workload-status, dashboard-stats, top-clients.

Every response uses the same envelope. A report whose data could not be
loaded or computed comes back with ``degraded: true`` and its default data
instead of failing the request.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from analytics.engine import REPORTS, ReportResult, run_all_reports, run_report
from analytics.reports import AnalyticsOptions
from api.deps import get_analytics_options, get_db

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


def _envelope(result: ReportResult) -> dict[str, Any]:
    body = {
        "success": not result.degraded,
        "feature": result.feature,
        "description": result.description,
        "degraded": result.degraded,
        "data": result.data,
    }
    if result.error:
        body["error"] = result.error
    return body


@router.get("/")
async def all_reports(
    db: AsyncSession = Depends(get_db),
    options: AnalyticsOptions = Depends(get_analytics_options),
) -> dict[str, Any]:
    """Refresh the whole dashboard in one request."""
    results = await run_all_reports(db, options)
    return {
        "as_of": options.today,
        "reports": {name: _envelope(result) for name, result in results.items()},
    }


@router.get("/{report_name}")
async def single_report(
    report_name: str,
    db: AsyncSession = Depends(get_db),
    options: AnalyticsOptions = Depends(get_analytics_options),
) -> dict[str, Any]:
    if report_name not in REPORTS:
        raise HTTPException(status_code=404, detail=f"Unknown report: {report_name}")
    result = await run_report(db, report_name, options)
    return _envelope(result)
