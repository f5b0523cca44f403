"""
Reviews Router — Client feedback on jobs.
"""

import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from db.models import Customer, Job, Review, ReviewAuthor, ReviewJob, User

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])


class ReviewCreate(BaseModel):
    job_id: int
    customer_id: int | None = None
    comment: str = Field(..., min_length=1)
    date: datetime.date | None = None


class ReviewResponse(BaseModel):
    id: int
    date: datetime.date
    comment: str
    job_id: int | None
    job_title: str | None
    client_name: str | None


@router.get("/", response_model=list[ReviewResponse])
async def list_reviews(db: AsyncSession = Depends(get_db)):
    """Reviews, newest first."""
    result = await db.execute(_review_query().order_by(Review.date.desc(), Review.id.desc()))
    return [_serialize_review(row) for row in result.all()]


@router.post("/", response_model=ReviewResponse, status_code=201)
async def create_review(payload: ReviewCreate, db: AsyncSession = Depends(get_db)):
    if await db.get(Job, payload.job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if payload.customer_id is not None and await db.get(Customer, payload.customer_id) is None:
        raise HTTPException(status_code=404, detail="Client not found")

    review = Review(comment=payload.comment, date=payload.date or datetime.date.today())
    db.add(review)
    await db.flush()
    db.add(ReviewJob(review_id=review.id, job_id=payload.job_id))
    if payload.customer_id is not None:
        db.add(ReviewAuthor(review_id=review.id, customer_id=payload.customer_id))
    await db.commit()

    result = await db.execute(_review_query().where(Review.id == review.id))
    return _serialize_review(result.first())


def _review_query():
    return (
        select(Review, Job.id.label("job_id"), Job.title.label("job_title"), User.name.label("client_name"))
        .outerjoin(ReviewJob, ReviewJob.review_id == Review.id)
        .outerjoin(Job, Job.id == ReviewJob.job_id)
        .outerjoin(ReviewAuthor, ReviewAuthor.review_id == Review.id)
        .outerjoin(User, User.id == ReviewAuthor.customer_id)
    )


def _serialize_review(row) -> dict:
    review = row.Review
    return {
        "id": review.id,
        "date": review.date,
        "comment": review.comment,
        "job_id": row.job_id,
        "job_title": row.job_title,
        "client_name": row.client_name,
    }
