"""
FreelanceDesk API Dependencies

Dependency injection for DB sessions, settings, and analytics options.
"""

from collections.abc import AsyncGenerator
from datetime import date

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from analytics.reports import AnalyticsOptions
from core.config import Settings, get_settings
from db.session import AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_analytics_options(
    as_of: date | None = Query(None, description="Reference date for 'today' (defaults to the current date)"),
    settings: Settings = Depends(get_settings),
) -> AnalyticsOptions:
    """Build report options from settings; `as_of` pins "today" for reproducible reports."""
    return AnalyticsOptions.from_settings(settings, today=as_of)
