"""
Payments Router — Payment listing and settlement.
"""

from datetime import date, datetime
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from db.models import Job, JobPayment, JobRequest, Payment, User

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class PaymentUpdate(BaseModel):
    status: Literal["pending", "paid", "overdue", "cancelled"] | None = None
    payment_date: date | None = None
    method: Literal["bank_transfer", "credit_card", "cash", "online"] | None = None


class PaymentResponse(BaseModel):
    id: int
    due_date: date
    payment_date: date | None
    status: str
    amount: float
    method: str
    created_at: datetime
    job_id: int | None = None
    job_title: str | None = None
    client_name: str | None = None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[PaymentResponse])
async def list_payments(
    status: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List payments with the job they settle and the client who owes them."""
    query = _payment_query().order_by(Payment.created_at.desc(), Payment.id.desc())
    if status:
        query = query.where(Payment.status == status)
    result = await db.execute(query.limit(limit))
    return [_serialize_payment(row) for row in result.all()]


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: int, db: AsyncSession = Depends(get_db)):
    return _serialize_payment(await _get_payment_row_or_404(db, payment_id))


@router.patch("/{payment_id}", response_model=PaymentResponse)
async def update_payment(payment_id: int, update: PaymentUpdate, db: AsyncSession = Depends(get_db)):
    """
    Update a payment. Marking it paid without a payment_date stamps today's
    date, unless the payment already carries one. payment_date only exists
    on paid payments: it is cleared when the status leaves `paid` and
    rejected when the payment will not be paid.
    """
    fields = update.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    payment = await db.get(Payment, payment_id)
    if payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")

    is_paid = fields.get("status", payment.status) == "paid"
    if not is_paid and "payment_date" in fields:
        raise HTTPException(status_code=400, detail="payment_date can only be set on a paid payment")

    for field, value in fields.items():
        setattr(payment, field, value)
    if not is_paid:
        payment.payment_date = None
    elif payment.payment_date is None:
        payment.payment_date = date.today()

    await db.commit()
    logger.info("payment.updated", payment_id=payment_id, fields=sorted(fields))
    return _serialize_payment(await _get_payment_row_or_404(db, payment_id))


def _payment_query():
    return (
        select(Payment, Job.id.label("job_id"), Job.title.label("job_title"), User.name.label("client_name"))
        .outerjoin(JobPayment, JobPayment.payment_id == Payment.id)
        .outerjoin(Job, Job.id == JobPayment.job_id)
        .outerjoin(JobRequest, JobRequest.job_id == Job.id)
        .outerjoin(User, User.id == JobRequest.customer_id)
    )


async def _get_payment_row_or_404(db: AsyncSession, payment_id: int):
    result = await db.execute(
        _payment_query().where(Payment.id == payment_id).execution_options(populate_existing=True)
    )
    row = result.first()
    if row is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return row


def _serialize_payment(row) -> dict:
    payment = row.Payment
    return {
        "id": payment.id,
        "due_date": payment.due_date,
        "payment_date": payment.payment_date,
        "status": payment.status,
        "amount": float(payment.amount),
        "method": payment.method,
        "created_at": payment.created_at,
        "job_id": row.job_id,
        "job_title": row.job_title,
        "client_name": row.client_name,
    }
