"""
Domain Snapshot — Read-only view of the store consumed by every report.

Reports never touch the ORM. The loader copies the rows each report needs
into frozen records, and the snapshot builds its join indices once
(job -> payments, service -> jobs, review -> job, ...) so the aggregations
are single passes over dictionaries instead of nested scans.

Each table is fetched independently. A fetch that fails is logged and the
table is recorded as unavailable; reports that need it fall back to their
default while reports that don't are unaffected.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from functools import cached_property
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import (
    Customer,
    Job,
    JobLocation,
    JobPayment,
    JobRequest,
    JobService,
    Payment,
    Review,
    ReviewAuthor,
    ReviewJob,
    Service,
    User,
)

logger = structlog.get_logger()

# Table names understood by load_snapshot()
JOBS = "jobs"
PAYMENTS = "payments"
CUSTOMERS = "customers"
SERVICES = "services"
REVIEWS = "reviews"
JOB_LOCATIONS = "job_locations"
REQUESTS = "requests"
REQUIRES = "requires"
INVOLVES = "involves"
REVIEW_FOR_JOB = "review_for_job"
GIVES = "gives"


# ──────────────────────────────────────────────────────────────────────────
# Records
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class JobRecord:
    id: int
    title: str
    status: str
    total_amount: Decimal
    start_datetime: datetime | None


@dataclass(frozen=True)
class PaymentRecord:
    id: int
    due_date: date
    payment_date: date | None
    status: str
    amount: Decimal
    method: str


@dataclass(frozen=True)
class CustomerRecord:
    id: int
    name: str


@dataclass(frozen=True)
class ServiceRecord:
    id: int
    name: str
    description: str


@dataclass(frozen=True)
class ReviewRecord:
    id: int
    date: date
    comment: str


@dataclass(frozen=True)
class DomainSnapshot:
    """
    Immutable collections plus association pairs.

    Association tuples:
      requests        (customer_id, job_id)
      requires        (job_id, service_id)
      involves        (job_id, payment_id)
      review_for_job  (review_id, job_id)
      gives           (review_id, customer_id)
      job_locations   (job_id, location)
    """

    jobs: tuple[JobRecord, ...] = ()
    payments: tuple[PaymentRecord, ...] = ()
    customers: tuple[CustomerRecord, ...] = ()
    services: tuple[ServiceRecord, ...] = ()
    reviews: tuple[ReviewRecord, ...] = ()
    job_locations: tuple[tuple[int, str], ...] = ()
    requests: tuple[tuple[int, int], ...] = ()
    requires: tuple[tuple[int, int], ...] = ()
    involves: tuple[tuple[int, int], ...] = ()
    review_for_job: tuple[tuple[int, int], ...] = ()
    gives: tuple[tuple[int, int], ...] = ()
    unavailable: frozenset[str] = field(default_factory=frozenset)

    # ── Entity lookups ────────────────────────────────────────────────

    @cached_property
    def jobs_by_id(self) -> dict[int, JobRecord]:
        return {job.id: job for job in self.jobs}

    @cached_property
    def payments_by_id(self) -> dict[int, PaymentRecord]:
        return {payment.id: payment for payment in self.payments}

    @cached_property
    def customers_by_id(self) -> dict[int, CustomerRecord]:
        return {customer.id: customer for customer in self.customers}

    # ── Association indices ───────────────────────────────────────────

    @cached_property
    def payment_ids_by_job(self) -> dict[int, list[int]]:
        return _group(self.involves)

    @cached_property
    def job_id_by_payment(self) -> dict[int, int]:
        return _first(((payment_id, job_id) for job_id, payment_id in self.involves))

    @cached_property
    def job_ids_by_customer(self) -> dict[int, list[int]]:
        return _group(self.requests)

    @cached_property
    def customer_id_by_job(self) -> dict[int, int]:
        return _first(((job_id, customer_id) for customer_id, job_id in self.requests))

    @cached_property
    def job_ids_by_service(self) -> dict[int, list[int]]:
        return _group(((service_id, job_id) for job_id, service_id in self.requires))

    @cached_property
    def job_id_by_review(self) -> dict[int, int]:
        return _first(self.review_for_job)

    @cached_property
    def customer_id_by_review(self) -> dict[int, int]:
        return _first(self.gives)

    @cached_property
    def locations_by_job(self) -> dict[int, list[str]]:
        return _group(self.job_locations)

    # ── Convenience ───────────────────────────────────────────────────

    def payments_for_job(self, job_id: int) -> list[PaymentRecord]:
        """Payments settling a job; ids that no longer resolve are skipped."""
        return [
            self.payments_by_id[payment_id]
            for payment_id in self.payment_ids_by_job.get(job_id, [])
            if payment_id in self.payments_by_id
        ]

    def customer_name(self, customer_id: int | None) -> str | None:
        customer = self.customers_by_id.get(customer_id) if customer_id is not None else None
        return customer.name if customer else None


def _group(pairs: Iterable[tuple[Any, Any]]) -> dict[Any, list[Any]]:
    # First-seen order, duplicates dropped
    grouped: dict[Any, dict[Any, None]] = {}
    for key, value in pairs:
        grouped.setdefault(key, {})[value] = None
    return {key: list(values) for key, values in grouped.items()}


def _first(pairs: Iterable[tuple[Any, Any]]) -> dict[Any, Any]:
    mapping: dict[Any, Any] = {}
    for key, value in pairs:
        mapping.setdefault(key, value)
    return mapping


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ──────────────────────────────────────────────────────────────────────────
# Loaders
# ──────────────────────────────────────────────────────────────────────────


async def _load_jobs(db: AsyncSession) -> tuple[JobRecord, ...]:
    result = await db.execute(
        select(Job.id, Job.title, Job.status, Job.total_amount, Job.start_datetime).order_by(Job.id)
    )
    return tuple(
        JobRecord(
            id=row.id,
            title=row.title,
            status=row.status,
            total_amount=to_decimal(row.total_amount),
            start_datetime=row.start_datetime,
        )
        for row in result.all()
    )


async def _load_payments(db: AsyncSession) -> tuple[PaymentRecord, ...]:
    result = await db.execute(
        select(
            Payment.id,
            Payment.due_date,
            Payment.payment_date,
            Payment.status,
            Payment.amount,
            Payment.method,
        ).order_by(Payment.id)
    )
    return tuple(
        PaymentRecord(
            id=row.id,
            due_date=row.due_date,
            payment_date=row.payment_date,
            status=row.status,
            amount=to_decimal(row.amount),
            method=row.method,
        )
        for row in result.all()
    )


async def _load_customers(db: AsyncSession) -> tuple[CustomerRecord, ...]:
    result = await db.execute(
        select(Customer.id, User.name).join(User, User.id == Customer.id).order_by(Customer.id)
    )
    return tuple(CustomerRecord(id=row.id, name=row.name) for row in result.all())


async def _load_services(db: AsyncSession) -> tuple[ServiceRecord, ...]:
    result = await db.execute(select(Service.id, Service.name, Service.description).order_by(Service.id))
    return tuple(
        ServiceRecord(id=row.id, name=row.name, description=row.description or "") for row in result.all()
    )


async def _load_reviews(db: AsyncSession) -> tuple[ReviewRecord, ...]:
    result = await db.execute(select(Review.id, Review.date, Review.comment).order_by(Review.id))
    return tuple(ReviewRecord(id=row.id, date=row.date, comment=row.comment or "") for row in result.all())


def _pair_loader(left, right) -> Callable[[AsyncSession], Awaitable[tuple[tuple[Any, Any], ...]]]:
    async def _load(db: AsyncSession) -> tuple[tuple[Any, Any], ...]:
        result = await db.execute(select(left, right).order_by(left, right))
        return tuple((row[0], row[1]) for row in result.all())

    return _load


_TABLE_LOADERS: dict[str, Callable[[AsyncSession], Awaitable[tuple]]] = {
    JOBS: _load_jobs,
    PAYMENTS: _load_payments,
    CUSTOMERS: _load_customers,
    SERVICES: _load_services,
    REVIEWS: _load_reviews,
    JOB_LOCATIONS: _pair_loader(JobLocation.job_id, JobLocation.location),
    REQUESTS: _pair_loader(JobRequest.customer_id, JobRequest.job_id),
    REQUIRES: _pair_loader(JobService.job_id, JobService.service_id),
    INVOLVES: _pair_loader(JobPayment.job_id, JobPayment.payment_id),
    REVIEW_FOR_JOB: _pair_loader(ReviewJob.review_id, ReviewJob.job_id),
    GIVES: _pair_loader(ReviewAuthor.review_id, ReviewAuthor.customer_id),
}

ALL_TABLES: tuple[str, ...] = tuple(_TABLE_LOADERS)


# Driver-level connection failures (asyncpg) surface as OSError, not SQLAlchemyError
FETCH_ERRORS = (SQLAlchemyError, OSError)


async def load_snapshot(db: AsyncSession, tables: Iterable[str] = ALL_TABLES) -> DomainSnapshot:
    """
    Fetch the requested tables into a DomainSnapshot.

    Tables that fail to load are left empty and listed in
    ``snapshot.unavailable``; the error never propagates.
    """
    collections: dict[str, tuple] = {}
    unavailable: set[str] = set()

    for table in dict.fromkeys(tables):
        loader = _TABLE_LOADERS.get(table)
        if loader is None:
            raise ValueError(f"Unknown snapshot table: {table!r}")
        try:
            collections[table] = await loader(db)
        except FETCH_ERRORS as exc:
            logger.warning("analytics.table_unavailable", table=table, error=str(exc))
            unavailable.add(table)
            await _reset_transaction(db)

    return DomainSnapshot(**collections, unavailable=frozenset(unavailable))


async def _reset_transaction(db: AsyncSession) -> None:
    """Clear the failed transaction so the remaining fetches can run."""
    try:
        await db.rollback()
    except FETCH_ERRORS as exc:
        logger.warning("analytics.rollback_failed", error=str(exc))
