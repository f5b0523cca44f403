"""
Jobs Router — CRUD for jobs, their locations, services, and billing.

Creating a job also opens its payment: a pending bank transfer for the full
amount, due 30 days out, linked through `involves`.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.deps import get_db
from db.models import Customer, Job, JobLocation, JobPayment, JobRequest, JobService, Payment, Service

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/jobs", tags=["jobs"])

PAYMENT_TERMS_DAYS = 30


# ─── Schemas ────────────────────────────────────────────────────────────────


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    status: Literal["ongoing", "completed", "cancelled"] = "ongoing"
    total_amount: float = Field(..., gt=0)
    start_datetime: datetime | None = None
    locations: list[str] = []
    client_id: int | None = None
    services: list[int] = []


class JobUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: Literal["ongoing", "completed", "cancelled"] | None = None
    total_amount: float | None = Field(None, gt=0)
    start_datetime: datetime | None = None
    locations: list[str] | None = None


class JobResponse(BaseModel):
    id: int
    title: str
    description: str | None
    start_datetime: datetime
    status: str
    total_amount: float
    created_at: datetime
    updated_at: datetime
    locations: list[str]
    services: list[str]
    client_id: int | None
    payment_ids: list[int]


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[JobResponse])
async def list_jobs(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List jobs, newest first."""
    query = _job_query().order_by(Job.created_at.desc(), Job.id.desc())
    if status:
        query = query.where(Job.status == status)
    result = await db.execute(query.offset(skip).limit(limit))
    return [_serialize_job(job) for job in result.scalars().all()]


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, db: AsyncSession = Depends(get_db)):
    job = await _get_job_or_404(db, job_id)
    return _serialize_job(job)


@router.post("/", response_model=JobResponse, status_code=201)
async def create_job(payload: JobCreate, db: AsyncSession = Depends(get_db)):
    """Create a job with its locations, client link, service links, and payment."""
    if payload.client_id is not None and await db.get(Customer, payload.client_id) is None:
        raise HTTPException(status_code=404, detail="Client not found")

    service_ids = list(dict.fromkeys(payload.services))
    if service_ids:
        found = await db.execute(select(Service.id).where(Service.id.in_(service_ids)))
        missing = set(service_ids) - set(found.scalars().all())
        if missing:
            raise HTTPException(status_code=404, detail=f"Service not found: {sorted(missing)}")

    amount = Decimal(str(payload.total_amount))
    job = Job(
        title=payload.title,
        description=payload.description,
        status=payload.status,
        total_amount=amount,
        start_datetime=payload.start_datetime or datetime.utcnow(),
    )
    db.add(job)
    await db.flush()

    for location in dict.fromkeys(payload.locations):
        db.add(JobLocation(job_id=job.id, location=location))
    if payload.client_id is not None:
        db.add(JobRequest(customer_id=payload.client_id, job_id=job.id))
    for service_id in service_ids:
        db.add(JobService(job_id=job.id, service_id=service_id))

    payment = Payment(
        due_date=date.today() + timedelta(days=PAYMENT_TERMS_DAYS),
        method="bank_transfer",
        status="pending",
        amount=amount,
    )
    db.add(payment)
    await db.flush()
    db.add(JobPayment(job_id=job.id, payment_id=payment.id))

    await db.commit()
    logger.info("job.created", job_id=job.id, payment_id=payment.id, amount=str(amount))

    job = await _get_job_or_404(db, job.id)
    return _serialize_job(job)


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(job_id: int, update: JobUpdate, db: AsyncSession = Depends(get_db)):
    """Update job fields; a `locations` list replaces the existing locations."""
    job = await _get_job_or_404(db, job_id)
    fields = update.model_dump(exclude_unset=True, exclude_none=True)

    locations = fields.pop("locations", None)
    if "total_amount" in fields:
        fields["total_amount"] = Decimal(str(fields["total_amount"]))
    for field, value in fields.items():
        setattr(job, field, value)
    job.updated_at = datetime.utcnow()

    if locations is not None:
        wanted = list(dict.fromkeys(locations))
        for existing in list(job.locations):
            if existing.location not in wanted:
                job.locations.remove(existing)
        current = {loc.location for loc in job.locations}
        for location in wanted:
            if location not in current:
                job.locations.append(JobLocation(location=location))

    await db.commit()
    job = await _get_job_or_404(db, job_id)
    return _serialize_job(job)


@router.delete("/{job_id}", status_code=204)
async def delete_job(job_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a job and its association rows. Payments are kept for the books."""
    job = await _get_job_or_404(db, job_id)
    await db.delete(job)
    await db.commit()


def _job_query():
    return select(Job).options(
        selectinload(Job.locations),
        selectinload(Job.requirements).selectinload(JobService.service),
        selectinload(Job.requests),
        selectinload(Job.involvements),
    )


async def _get_job_or_404(db: AsyncSession, job_id: int) -> Job:
    result = await db.execute(
        _job_query().where(Job.id == job_id).execution_options(populate_existing=True)
    )
    job = result.scalar_one_or_none()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def _serialize_job(job: Job) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "start_datetime": job.start_datetime,
        "status": job.status,
        "total_amount": float(job.total_amount),
        "created_at": job.created_at,
        "updated_at": job.updated_at,
        "locations": [loc.location for loc in job.locations],
        "services": [req.service.name for req in job.requirements if req.service is not None],
        "client_id": job.requests[0].customer_id if job.requests else None,
        "payment_ids": [inv.payment_id for inv in job.involvements],
    }
