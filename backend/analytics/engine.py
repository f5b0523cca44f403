"""
Analytics Engine — Report registry and failure isolation.

Each report is an independent failure domain:
  1. Only the tables a report declares are fetched.
  2. If any of them could not be loaded, the report returns its default.
  3. If the computation itself fails, the report returns its default.
A degraded report never blocks its siblings and never returns partial rows.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from analytics import reports
from analytics.reports import AnalyticsOptions
from analytics.snapshot import (
    CUSTOMERS,
    GIVES,
    INVOLVES,
    JOB_LOCATIONS,
    JOBS,
    PAYMENTS,
    REQUESTS,
    REQUIRES,
    REVIEW_FOR_JOB,
    REVIEWS,
    SERVICES,
    DomainSnapshot,
    load_snapshot,
)

logger = structlog.get_logger()

# Computation errors that degrade a report instead of failing the request
REPORT_ERRORS = (ArithmeticError, KeyError, TypeError, ValueError)


@dataclass(frozen=True)
class ReportDefinition:
    name: str
    feature: str
    description: str
    compute: Callable[[DomainSnapshot, AnalyticsOptions], Any]
    tables: tuple[str, ...]
    default: Callable[[AnalyticsOptions], Any]


@dataclass(frozen=True)
class ReportResult:
    name: str
    feature: str
    description: str
    data: Any
    degraded: bool = False
    error: str | None = None


def _empty_list(options: AnalyticsOptions) -> list:
    return []


REPORTS: dict[str, ReportDefinition] = {
    definition.name: definition
    for definition in (
        ReportDefinition(
            name="payment-alerts",
            feature="Payment Due Alerts",
            description="Unpaid payments due within the alert window or overdue",
            compute=reports.payment_alerts,
            tables=(PAYMENTS, INVOLVES, JOBS, REQUESTS, CUSTOMERS),
            default=_empty_list,
        ),
        ReportDefinition(
            name="monthly-income",
            feature="Monthly Income",
            description="Paid income grouped by month and year",
            compute=reports.monthly_income,
            tables=(PAYMENTS,),
            default=_empty_list,
        ),
        ReportDefinition(
            name="yearly-income",
            feature="Yearly Income",
            description="Paid income grouped by year",
            compute=reports.yearly_income,
            tables=(PAYMENTS,),
            default=_empty_list,
        ),
        ReportDefinition(
            name="client-reliability",
            feature="Client Payment Reliability",
            description="On-time payment percentage per customer",
            compute=reports.client_reliability,
            tables=(CUSTOMERS, REQUESTS, INVOLVES, PAYMENTS),
            default=_empty_list,
        ),
        ReportDefinition(
            name="completion-time",
            feature="Average Project Completion Time",
            description="Average days from job start to payment",
            compute=reports.average_completion_time,
            tables=(JOBS, INVOLVES, PAYMENTS),
            default=lambda options: reports.CompletionTime(
                avg_days=options.completion_fallback_days, sample_size=0, is_fallback=True
            ),
        ),
        ReportDefinition(
            name="service-demand",
            feature="Service Demand Analytics",
            description="Number of jobs requiring each service",
            compute=reports.service_demand,
            tables=(SERVICES, REQUIRES),
            default=_empty_list,
        ),
        ReportDefinition(
            name="service-revenue",
            feature="Revenue by Service",
            description="Total paid revenue grouped by service",
            compute=reports.service_revenue,
            tables=(SERVICES, REQUIRES, JOBS, INVOLVES, PAYMENTS),
            default=_empty_list,
        ),
        ReportDefinition(
            name="high-value-projects",
            feature="High-Value Project Detection",
            description="Jobs with total_amount above the average",
            compute=reports.high_value_projects,
            tables=(JOBS, JOB_LOCATIONS),
            default=lambda options: reports.HighValueReport(average_amount=Decimal("0"), projects=[]),
        ),
        ReportDefinition(
            name="review-sentiment",
            feature="Review Sentiment Indicator",
            description="Keyword-based sentiment classification of reviews",
            compute=reports.review_sentiment,
            tables=(REVIEWS, REVIEW_FOR_JOB, JOBS, GIVES, CUSTOMERS),
            default=lambda options: reports.SentimentReport(
                summary={"positive": 0, "neutral": 0, "negative": 0}, reviews=[]
            ),
        ),
        ReportDefinition(
            name="workload-status",
            feature="Workload Status Overview",
            description="Job status counts and pending payments",
            compute=reports.workload_status,
            tables=(JOBS, PAYMENTS),
            default=lambda options: reports.WorkloadStatus(),
        ),
        ReportDefinition(
            name="dashboard-stats",
            feature="Dashboard Summary",
            description="Headline totals for the dashboard",
            compute=reports.dashboard_stats,
            tables=(JOBS, CUSTOMERS, PAYMENTS, INVOLVES),
            default=lambda options: reports.DashboardStats(
                total_jobs=0,
                total_clients=0,
                total_revenue=Decimal("0"),
                pending_amount=Decimal("0"),
                avg_completion_time=options.completion_fallback_days,
                avg_job_value=0,
            ),
        ),
        ReportDefinition(
            name="top-clients",
            feature="Top Clients",
            description="Highest-paying clients by total job value",
            compute=reports.top_clients,
            tables=(CUSTOMERS, REQUESTS, JOBS),
            default=_empty_list,
        ),
    )
}


def get_report(name: str) -> ReportDefinition:
    """Look up a report by name. Raises KeyError for unknown names."""
    return REPORTS[name]


def evaluate(definition: ReportDefinition, snapshot: DomainSnapshot, options: AnalyticsOptions) -> ReportResult:
    """Compute one report against a snapshot, falling back to its default on failure."""
    missing = sorted(set(definition.tables) & snapshot.unavailable)
    if missing:
        logger.warning("analytics.report_degraded", report=definition.name, missing_tables=missing)
        return _degraded(definition, options, f"Unavailable tables: {', '.join(missing)}")

    try:
        data = definition.compute(snapshot, options)
    except REPORT_ERRORS as exc:
        logger.error("analytics.report_failed", report=definition.name, error=str(exc), exc_info=True)
        return _degraded(definition, options, str(exc))

    return ReportResult(
        name=definition.name,
        feature=definition.feature,
        description=definition.description,
        data=data,
    )


def _degraded(definition: ReportDefinition, options: AnalyticsOptions, error: str) -> ReportResult:
    return ReportResult(
        name=definition.name,
        feature=definition.feature,
        description=definition.description,
        data=definition.default(options),
        degraded=True,
        error=error,
    )


async def run_report(db: AsyncSession, name: str, options: AnalyticsOptions) -> ReportResult:
    """Fetch the tables a single report needs and evaluate it."""
    definition = get_report(name)
    snapshot = await load_snapshot(db, definition.tables)
    return evaluate(definition, snapshot, options)


async def run_all_reports(db: AsyncSession, options: AnalyticsOptions) -> dict[str, ReportResult]:
    """
    Dashboard refresh: load every table once, then evaluate each report
    independently against the shared snapshot.
    """
    tables = [table for definition in REPORTS.values() for table in definition.tables]
    snapshot = await load_snapshot(db, tables)
    results = {name: evaluate(definition, snapshot, options) for name, definition in REPORTS.items()}
    degraded = [name for name, result in results.items() if result.degraded]
    logger.info("analytics.refresh_complete", reports=len(results), degraded=degraded)
    return results
