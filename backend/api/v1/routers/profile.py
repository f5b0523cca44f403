"""
Profile Router — The service provider running this dashboard.

There is no auth session to identify the provider, so the profile id comes
from configuration (`PROVIDER_PROFILE_ID`).
"""

from decimal import Decimal

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from api.v1.routers.clients import ensure_email_available
from core.config import Settings, get_settings
from db.models import ServiceProvider, User

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])

DEFAULT_PROFILE = {
    "id": 0,
    "email": "demo@freelancedesk.app",
    "name": "Demo Freelancer",
    "user_type": "service_provider",
    "specialization": "Full Stack Development",
    "hourly_rate": 75.0,
    "is_default": True,
}


class ProfileUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, min_length=3, max_length=255)
    specialization: str | None = Field(None, max_length=255)
    hourly_rate: float | None = Field(None, ge=0)


class ProfileResponse(BaseModel):
    id: int
    email: str
    name: str
    user_type: str
    specialization: str | None
    hourly_rate: float | None
    is_default: bool = False


@router.get("/", response_model=ProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Configured provider profile, or a demo profile when it does not exist."""
    row = await _get_provider(db, settings.provider_profile_id)
    if row is None:
        return DEFAULT_PROFILE
    return _serialize_profile(*row)


@router.patch("/", response_model=ProfileResponse)
async def update_profile(
    update: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Update the configured provider's account and rate. The demo profile cannot be edited."""
    fields = update.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    row = await _get_provider(db, settings.provider_profile_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Provider profile not found")
    user, provider = row

    if "email" in fields and fields["email"] != user.email:
        await ensure_email_available(db, fields["email"])

    for field in ("name", "email"):
        if field in fields:
            setattr(user, field, fields[field])
    if "specialization" in fields:
        provider.specialization = fields["specialization"]
    if "hourly_rate" in fields:
        provider.hourly_rate = Decimal(str(fields["hourly_rate"]))

    await db.commit()
    logger.info("profile.updated", provider_id=user.id, fields=sorted(fields))

    user, provider = await _get_provider(db, settings.provider_profile_id)
    return _serialize_profile(user, provider)


async def _get_provider(db: AsyncSession, provider_id: int):
    result = await db.execute(
        select(User, ServiceProvider)
        .join(ServiceProvider, ServiceProvider.id == User.id)
        .where(User.id == provider_id)
        .execution_options(populate_existing=True)
    )
    return result.one_or_none()


def _serialize_profile(user: User, provider: ServiceProvider) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "user_type": user.user_type,
        "specialization": provider.specialization,
        "hourly_rate": float(provider.hourly_rate) if provider.hourly_rate is not None else None,
    }
