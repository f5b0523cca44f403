"""
Analytics Reports — Pure aggregations over a DomainSnapshot.

Every report has the signature ``report(snapshot, options) -> result`` and
never mutates its inputs, so re-running against an unchanged snapshot gives
identical output and any number of reports can run side by side.

Reports:
  1. payment_alerts          - unpaid payments due within the alert window
  2. monthly_income          - paid income per (year, month), newest first
     yearly_income           - paid income per year, newest first
  3. client_reliability      - % of a client's paid payments settled on time
  4. average_completion_time - mean days from job start to settlement
  5. service_demand          - how many jobs require each service
  6. service_revenue         - paid revenue attributed to each service
  7. high_value_projects     - jobs above the mean job value
  8. review_sentiment        - keyword sentiment per review + summary
  9. workload_status         - job status counts + pending payments
  10. dashboard_stats        - headline totals for the dashboard
  11. top_clients            - highest-spending clients
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from analytics.sentiment import classify
from analytics.snapshot import DomainSnapshot, PaymentRecord

ZERO = Decimal("0")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class AnalyticsOptions:
    """Caller-supplied context for a report run."""

    today: date = field(default_factory=date.today)
    alert_window_days: int = 7
    completion_fallback_days: int = 14
    reliability_zero_policy: str = "omit"  # omit | perfect
    sentiment_match: str = "substring"  # substring | token
    top_clients_limit: int = 3

    @classmethod
    def from_settings(cls, settings, today: date | None = None) -> AnalyticsOptions:
        return cls(
            today=today or date.today(),
            alert_window_days=settings.alert_window_days,
            completion_fallback_days=settings.completion_fallback_days,
            reliability_zero_policy=settings.reliability_zero_policy,
            sentiment_match=settings.sentiment_match,
            top_clients_limit=settings.top_clients_limit,
        )


def round_half_up(value: Decimal | float | int) -> int:
    """Round to the nearest integer, halves away from zero (SQL ROUND semantics)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _is_settled(payment: PaymentRecord) -> bool:
    return payment.status == "paid" and payment.payment_date is not None


# ──────────────────────────────────────────────────────────────────────────
# 1. Payment Due Alerts
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PaymentAlert:
    payment_id: int
    amount: Decimal
    due_date: date
    status: str
    method: str
    job_id: int | None
    job_title: str | None
    client_name: str | None
    days_until_due: int
    is_overdue: bool


def payment_alerts(snapshot: DomainSnapshot, options: AnalyticsOptions) -> list[PaymentAlert]:
    """
    Unpaid payments due on or before today + alert window, including overdue ones.

    Ordered by due date ascending; payments sharing a due date keep input order.
    """
    alerts = []
    for payment in snapshot.payments:
        if payment.status == "paid":
            continue
        days_until_due = (payment.due_date - options.today).days
        if days_until_due > options.alert_window_days:
            continue

        job = snapshot.jobs_by_id.get(snapshot.job_id_by_payment.get(payment.id))
        customer_id = snapshot.customer_id_by_job.get(job.id) if job else None
        alerts.append(
            PaymentAlert(
                payment_id=payment.id,
                amount=payment.amount,
                due_date=payment.due_date,
                status=payment.status,
                method=payment.method,
                job_id=job.id if job else None,
                job_title=job.title if job else None,
                client_name=snapshot.customer_name(customer_id),
                days_until_due=days_until_due,
                is_overdue=days_until_due < 0,
            )
        )

    alerts.sort(key=lambda a: a.due_date)
    return alerts


# ──────────────────────────────────────────────────────────────────────────
# 2. Monthly / Yearly Income
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MonthlyIncome:
    year: int
    month: int
    total_income: Decimal


@dataclass(frozen=True)
class YearlyIncome:
    year: int
    total_income: Decimal
    months_with_income: int


def monthly_income(snapshot: DomainSnapshot, options: AnalyticsOptions) -> list[MonthlyIncome]:
    """Sum of paid amounts per calendar month of payment_date. Sparse, newest first."""
    totals: dict[tuple[int, int], Decimal] = {}
    for payment in snapshot.payments:
        if not _is_settled(payment):
            continue
        key = (payment.payment_date.year, payment.payment_date.month)
        totals[key] = totals.get(key, ZERO) + payment.amount

    return [
        MonthlyIncome(year=year, month=month, total_income=total)
        for (year, month), total in sorted(totals.items(), reverse=True)
    ]


def yearly_income(snapshot: DomainSnapshot, options: AnalyticsOptions) -> list[YearlyIncome]:
    totals: dict[int, Decimal] = {}
    months: dict[int, int] = {}
    for entry in monthly_income(snapshot, options):
        totals[entry.year] = totals.get(entry.year, ZERO) + entry.total_income
        months[entry.year] = months.get(entry.year, 0) + 1

    return [
        YearlyIncome(year=year, total_income=totals[year], months_with_income=months[year])
        for year in sorted(totals, reverse=True)
    ]


# ──────────────────────────────────────────────────────────────────────────
# 3. Client Payment Reliability
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ClientReliability:
    customer_id: int
    name: str
    total_payments: int
    on_time_payments: int
    reliability_score: int


def client_reliability(snapshot: DomainSnapshot, options: AnalyticsOptions) -> list[ClientReliability]:
    """
    On-time percentage of each customer's paid payments.

    A payment is on time when payment_date <= due_date. Customers with no
    paid payments are omitted, or scored 100 under the "perfect" policy.
    """
    results = []
    for customer in snapshot.customers:
        total = 0
        on_time = 0
        for job_id in snapshot.job_ids_by_customer.get(customer.id, []):
            for payment in snapshot.payments_for_job(job_id):
                if payment.status != "paid":
                    continue
                total += 1
                if payment.payment_date is not None and payment.payment_date <= payment.due_date:
                    on_time += 1

        if total == 0:
            if options.reliability_zero_policy == "perfect":
                results.append(ClientReliability(customer.id, customer.name, 0, 0, 100))
            continue

        results.append(
            ClientReliability(
                customer_id=customer.id,
                name=customer.name,
                total_payments=total,
                on_time_payments=on_time,
                reliability_score=round_half_up(Decimal(on_time * 100) / Decimal(total)),
            )
        )

    results.sort(key=lambda r: r.reliability_score, reverse=True)
    return results


# ──────────────────────────────────────────────────────────────────────────
# 4. Average Completion Time
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CompletionTime:
    avg_days: int
    sample_size: int
    is_fallback: bool


def completion_days(start: datetime, paid_on: date) -> int:
    """Whole days from job start to settlement, rounded up."""
    elapsed = datetime.combine(paid_on, time.min) - start
    return math.ceil(elapsed / timedelta(days=1))


def average_completion_time(snapshot: DomainSnapshot, options: AnalyticsOptions) -> CompletionTime:
    samples = []
    for job in snapshot.jobs:
        if job.status != "completed" or job.start_datetime is None:
            continue
        for payment in snapshot.payments_for_job(job.id):
            if not _is_settled(payment):
                continue
            days = completion_days(job.start_datetime, payment.payment_date)
            if days > 0:
                samples.append(days)

    if not samples:
        return CompletionTime(avg_days=options.completion_fallback_days, sample_size=0, is_fallback=True)
    return CompletionTime(
        avg_days=round_half_up(Decimal(sum(samples)) / len(samples)),
        sample_size=len(samples),
        is_fallback=False,
    )


# ──────────────────────────────────────────────────────────────────────────
# 5. Service Demand
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ServiceDemand:
    service_id: int
    name: str
    description: str
    demand_count: int


def service_demand(snapshot: DomainSnapshot, options: AnalyticsOptions) -> list[ServiceDemand]:
    counts: dict[int, int] = {}
    for _job_id, service_id in snapshot.requires:
        counts[service_id] = counts.get(service_id, 0) + 1

    results = [
        ServiceDemand(
            service_id=service.id,
            name=service.name,
            description=service.description,
            demand_count=counts.get(service.id, 0),
        )
        for service in snapshot.services
    ]
    results.sort(key=lambda s: s.demand_count, reverse=True)
    return results


# ──────────────────────────────────────────────────────────────────────────
# 6. Revenue by Service
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ServiceRevenue:
    service_id: int
    name: str
    description: str
    total_revenue: Decimal
    job_count: int


def service_revenue(snapshot: DomainSnapshot, options: AnalyticsOptions) -> list[ServiceRevenue]:
    """
    Paid revenue of every job requiring a service.

    A job using several services contributes its full payment to each of them.
    """
    results = []
    for service in snapshot.services:
        job_ids = snapshot.job_ids_by_service.get(service.id, [])
        revenue = ZERO
        for job_id in job_ids:
            for payment in snapshot.payments_for_job(job_id):
                if payment.status == "paid":
                    revenue += payment.amount
        results.append(
            ServiceRevenue(
                service_id=service.id,
                name=service.name,
                description=service.description,
                total_revenue=revenue,
                job_count=sum(1 for job_id in job_ids if job_id in snapshot.jobs_by_id),
            )
        )

    results.sort(key=lambda s: s.total_revenue, reverse=True)
    return results


# ──────────────────────────────────────────────────────────────────────────
# 7. High-Value Project Detection
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HighValueProject:
    job_id: int
    title: str
    status: str
    total_amount: Decimal
    start_datetime: datetime | None
    locations: list[str]


@dataclass(frozen=True)
class HighValueReport:
    average_amount: Decimal
    projects: list[HighValueProject]


def high_value_projects(snapshot: DomainSnapshot, options: AnalyticsOptions) -> HighValueReport:
    """Jobs strictly above the mean total_amount of all jobs, largest first."""
    if not snapshot.jobs:
        return HighValueReport(average_amount=ZERO, projects=[])

    average = sum((job.total_amount for job in snapshot.jobs), ZERO) / len(snapshot.jobs)
    projects = [
        HighValueProject(
            job_id=job.id,
            title=job.title,
            status=job.status,
            total_amount=job.total_amount,
            start_datetime=job.start_datetime,
            locations=list(snapshot.locations_by_job.get(job.id, [])),
        )
        for job in snapshot.jobs
        if job.total_amount > average
    ]
    projects.sort(key=lambda p: p.total_amount, reverse=True)
    return HighValueReport(average_amount=average.quantize(CENTS, rounding=ROUND_HALF_UP), projects=projects)


# ──────────────────────────────────────────────────────────────────────────
# 8. Review Sentiment Indicator
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ReviewSentiment:
    review_id: int
    date: date
    comment: str
    job_id: int | None
    job_title: str | None
    client_name: str | None
    positive_hits: int
    negative_hits: int
    sentiment: str


@dataclass(frozen=True)
class SentimentReport:
    summary: dict[str, int]
    reviews: list[ReviewSentiment]


def review_sentiment(snapshot: DomainSnapshot, options: AnalyticsOptions) -> SentimentReport:
    summary = {"positive": 0, "neutral": 0, "negative": 0}
    reviews = []
    for review in snapshot.reviews:
        score = classify(review.comment, options.sentiment_match)
        summary[score.sentiment] += 1
        job = snapshot.jobs_by_id.get(snapshot.job_id_by_review.get(review.id))
        reviews.append(
            ReviewSentiment(
                review_id=review.id,
                date=review.date,
                comment=review.comment,
                job_id=job.id if job else None,
                job_title=job.title if job else None,
                client_name=snapshot.customer_name(snapshot.customer_id_by_review.get(review.id)),
                positive_hits=score.positive_hits,
                negative_hits=score.negative_hits,
                sentiment=score.sentiment,
            )
        )

    reviews.sort(key=lambda r: r.date, reverse=True)
    return SentimentReport(summary=summary, reviews=reviews)


# ──────────────────────────────────────────────────────────────────────────
# 9. Workload Status Overview
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class WorkloadStatus:
    ongoing_count: int = 0
    completed_count: int = 0
    cancelled_count: int = 0
    pending_payments: int = 0


def workload_status(snapshot: DomainSnapshot, options: AnalyticsOptions) -> WorkloadStatus:
    counts = {"ongoing": 0, "completed": 0, "cancelled": 0}
    for job in snapshot.jobs:
        if job.status in counts:
            counts[job.status] += 1
    return WorkloadStatus(
        ongoing_count=counts["ongoing"],
        completed_count=counts["completed"],
        cancelled_count=counts["cancelled"],
        pending_payments=sum(1 for p in snapshot.payments if p.status == "pending"),
    )


# ──────────────────────────────────────────────────────────────────────────
# 10. Dashboard Summary
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DashboardStats:
    total_jobs: int
    total_clients: int
    total_revenue: Decimal
    pending_amount: Decimal
    avg_completion_time: int
    avg_job_value: int


def dashboard_stats(snapshot: DomainSnapshot, options: AnalyticsOptions) -> DashboardStats:
    revenue = sum((p.amount for p in snapshot.payments if _is_settled(p)), ZERO)
    pending = sum((p.amount for p in snapshot.payments if p.status == "pending"), ZERO)
    job_total = sum((job.total_amount for job in snapshot.jobs), ZERO)
    return DashboardStats(
        total_jobs=len(snapshot.jobs),
        total_clients=len(snapshot.customers),
        total_revenue=revenue,
        pending_amount=pending,
        avg_completion_time=average_completion_time(snapshot, options).avg_days,
        avg_job_value=round_half_up(job_total / len(snapshot.jobs)) if snapshot.jobs else 0,
    )


# ──────────────────────────────────────────────────────────────────────────
# 11. Top Clients
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TopClient:
    customer_id: int
    name: str
    total_spent: Decimal
    job_count: int


def top_clients(snapshot: DomainSnapshot, options: AnalyticsOptions) -> list[TopClient]:
    ranked = []
    for customer in snapshot.customers:
        jobs = [
            snapshot.jobs_by_id[job_id]
            for job_id in snapshot.job_ids_by_customer.get(customer.id, [])
            if job_id in snapshot.jobs_by_id
        ]
        if not jobs:
            continue
        ranked.append(
            TopClient(
                customer_id=customer.id,
                name=customer.name,
                total_spent=sum((job.total_amount for job in jobs), ZERO),
                job_count=len(jobs),
            )
        )

    ranked.sort(key=lambda c: c.total_spent, reverse=True)
    return ranked[: max(0, options.top_clients_limit)]
