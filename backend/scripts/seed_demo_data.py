"""
Seed Demo Data — Creates the demo freelance workspace for development.

Ten jobs for five clients across eight services, one payment per job,
reviews for the completed work, and the provider profile.

Run: python scripts/seed_demo_data.py
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings
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
    ServiceProvider,
    User,
)
from db.session import Base

settings = get_settings()
logger = structlog.get_logger()

CLIENTS = [
    ("John Doe", "john.doe@email.com", "123 Main St, New York, NY", "+1-555-0101"),
    ("Jane Smith", "jane.smith@email.com", "456 Oak Ave, Los Angeles, CA", "+1-555-0102"),
    ("Acme Corporation", "acme.corp@email.com", "789 Corporate Blvd, Chicago, IL", "+1-555-0103"),
    ("Startup Inc", "startup.inc@email.com", "321 Innovation Dr, San Francisco, CA", "+1-555-0104"),
    ("Big Enterprise", "big.enterprise@email.com", "555 Enterprise Way, Seattle, WA", "+1-555-0105"),
]

SERVICES = [
    ("Web Development", "Full-stack web application development"),
    ("Mobile App Development", "iOS and Android app development"),
    ("UI/UX Design", "User interface and experience design"),
    ("Logo Design", "Brand identity and logo creation"),
    ("SEO Optimization", "Search engine optimization services"),
    ("Content Marketing", "Content strategy and creation"),
    ("Database Design", "Database architecture and optimization"),
    ("API Development", "RESTful API design and implementation"),
]

# title, start, status, amount, locations, client index, service indexes
JOBS = [
    ("E-commerce Website", datetime(2024, 1, 15, 9), "completed", 5000, ["Remote", "New York"], 0, [0, 2, 7]),
    ("Mobile Banking App", datetime(2024, 2, 1, 10), "completed", 12000, ["San Francisco", "Remote"], 3, [1, 2, 7]),
    ("Restaurant Website Redesign", datetime(2024, 3, 10, 11), "completed", 2500, ["Los Angeles"], 1, [0, 2, 3]),
    ("Marketing Campaign Dashboard", datetime(2024, 4, 5, 14), "ongoing", 3500, ["Chicago", "Remote"], 2, [0, 5]),
    ("Inventory Management System", datetime(2024, 5, 20, 9, 30), "ongoing", 8000, ["Seattle"], 4, [0, 6]),
    ("Social Media App", datetime(2024, 6, 15, 10), "ongoing", 15000, ["Remote"], 3, [1, 2, 7]),
    ("Corporate Website", datetime(2024, 7, 1, 9), "completed", 4500, ["New York", "Boston"], 2, [0, 4]),
    ("CRM System", datetime(2024, 8, 10, 11), "ongoing", 9500, ["Chicago"], 4, [0, 6, 7]),
    ("E-learning Platform", datetime(2024, 9, 1, 10), "ongoing", 11000, ["Remote", "Austin"], 0, [0, 2, 4]),
    ("Portfolio Website", datetime(2024, 10, 15, 14), "completed", 1500, ["Los Angeles"], 1, [2, 3]),
]

# due, method, status, paid on (one per job, same order)
PAYMENTS = [
    (date(2024, 2, 15), "bank_transfer", "paid", date(2024, 2, 10)),
    (date(2024, 3, 15), "credit_card", "paid", date(2024, 3, 20)),
    (date(2024, 4, 15), "online", "paid", date(2024, 4, 10)),
    (date(2024, 12, 28), "bank_transfer", "pending", None),
    (date(2024, 12, 25), "credit_card", "pending", None),
    (date(2025, 1, 15), "online", "pending", None),
    (date(2024, 8, 15), "bank_transfer", "paid", date(2024, 8, 12)),
    (date(2024, 12, 20), "credit_card", "pending", None),
    (date(2025, 1, 30), "online", "pending", None),
    (date(2024, 11, 15), "bank_transfer", "paid", date(2024, 11, 10)),
]

# job index, date, comment
REVIEWS = [
    (0, date(2024, 2, 20), "Excellent work! The website exceeded our expectations. Great attention to detail."),
    (1, date(2024, 3, 25), "Good job on the mobile app. Minor delays but quality was excellent."),
    (2, date(2024, 4, 20), "Amazing redesign! Our customers love the new look."),
    (6, date(2024, 8, 20), "Professional and timely delivery. Great communication throughout."),
    (9, date(2024, 11, 20), "Simple but effective portfolio. Happy with the result."),
]


async def seed_data(session: AsyncSession) -> dict[str, int]:
    """Insert the demo workspace. Returns row counts per entity."""
    provider_user = User(
        id=settings.provider_profile_id,
        email="alex.rivera@freelancedesk.app",
        name="Alex Rivera",
        user_type="service_provider",
    )
    session.add(provider_user)
    session.add(
        ServiceProvider(id=provider_user.id, specialization="Full Stack Development", hourly_rate=Decimal("75"))
    )
    await session.flush()

    customers = []
    for name, email, address, phone in CLIENTS:
        user = User(name=name, email=email, user_type="customer")
        session.add(user)
        await session.flush()
        customer = Customer(id=user.id, address=address, phone=phone)
        session.add(customer)
        customers.append(customer)

    services = [Service(name=name, description=description) for name, description in SERVICES]
    session.add_all(services)
    await session.flush()

    jobs = []
    for (title, start, status, amount, locations, client_idx, service_idxs), payment_row in zip(JOBS, PAYMENTS):
        job = Job(title=title, start_datetime=start, status=status, total_amount=Decimal(amount))
        session.add(job)
        due, method, payment_status, paid_on = payment_row
        payment = Payment(
            due_date=due,
            method=method,
            status=payment_status,
            payment_date=paid_on,
            amount=Decimal(amount),
        )
        session.add(payment)
        await session.flush()

        session.add_all(JobLocation(job_id=job.id, location=location) for location in locations)
        session.add(JobRequest(customer_id=customers[client_idx].id, job_id=job.id))
        session.add_all(JobService(job_id=job.id, service_id=services[idx].id) for idx in service_idxs)
        session.add(JobPayment(job_id=job.id, payment_id=payment.id))
        jobs.append(job)

    for job_idx, review_date, comment in REVIEWS:
        review = Review(date=review_date, comment=comment)
        session.add(review)
        await session.flush()
        session.add(ReviewJob(review_id=review.id, job_id=jobs[job_idx].id))
        client_idx = JOBS[job_idx][5]
        session.add(ReviewAuthor(review_id=review.id, customer_id=customers[client_idx].id))

    await session.commit()
    return {
        "clients": len(customers),
        "services": len(services),
        "jobs": len(jobs),
        "payments": len(PAYMENTS),
        "reviews": len(REVIEWS),
    }


async def main():
    engine = create_async_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with SessionLocal() as session:
            counts = await seed_data(session)
        logger.info("seed.complete", **counts)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
