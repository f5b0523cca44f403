"""
Services Router — Service catalog.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from db.models import Service

router = APIRouter(prefix="/api/v1/services", tags=["services"])


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: str | None

    model_config = {"from_attributes": True}


@router.get("/", response_model=list[ServiceResponse])
async def list_services(db: AsyncSession = Depends(get_db)):
    """All services ordered by name (used for job form dropdowns)."""
    result = await db.execute(select(Service).order_by(Service.name))
    return result.scalars().all()


@router.post("/", response_model=ServiceResponse, status_code=201)
async def create_service(service: ServiceCreate, db: AsyncSession = Depends(get_db)):
    db_service = Service(**service.model_dump())
    db.add(db_service)
    await db.commit()
    await db.refresh(db_service)
    return db_service
