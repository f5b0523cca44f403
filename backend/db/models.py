"""
FreelanceDesk Database Models

Tables:
  Entities:
  1. users               - Account records (customer or service provider)
  2. customers           - Client details, 1:1 with users
  3. service_providers   - Freelancer profile, 1:1 with users
  4. jobs                - Billable units of work
  5. job_locations       - Where a job is carried out (multi-valued)
  6. services            - Service catalog
  7. payments            - Money owed for a job
  8. reviews             - Client feedback on a job

  Associations:
  9.  requests           - customer commissioned job
  10. requires           - job uses service (many-to-many)
  11. involves           - payment settles job
  12. review_for_job     - review is about job
  13. gives              - customer wrote review
"""

from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from db.session import Base

JOB_STATUSES = ("ongoing", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "overdue", "cancelled")
PAYMENT_METHODS = ("bank_transfer", "credit_card", "cash", "online")
USER_TYPES = ("customer", "service_provider")


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


# ─── 1. Users ───────────────────────────────────────────────────────────────


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    user_type = Column(String(20), nullable=False, default="customer")
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (CheckConstraint(_in_clause("user_type", USER_TYPES), name="ck_user_type"),)

    customer = relationship("Customer", back_populates="user", uselist=False, cascade="all, delete-orphan")
    provider = relationship("ServiceProvider", back_populates="user", uselist=False, cascade="all, delete-orphan")


# ─── 2. Customers ───────────────────────────────────────────────────────────


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    address = Column(Text, default="")
    phone = Column(String(50), default="")

    user = relationship("User", back_populates="customer")
    requests = relationship("JobRequest", back_populates="customer", cascade="all, delete-orphan")
    reviews_given = relationship("ReviewAuthor", back_populates="customer", cascade="all, delete-orphan")


# ─── 3. Service Providers ───────────────────────────────────────────────────


class ServiceProvider(Base):
    __tablename__ = "service_providers"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    specialization = Column(String(255))
    hourly_rate = Column(Numeric(10, 2))

    __table_args__ = (CheckConstraint("hourly_rate >= 0", name="ck_provider_rate_positive"),)

    user = relationship("User", back_populates="provider")


# ─── 4. Jobs ────────────────────────────────────────────────────────────────


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    start_datetime = Column(DateTime, nullable=False, default=datetime.utcnow)
    status = Column(String(20), nullable=False, default="ongoing")
    total_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_jobs_status", "status"),
        CheckConstraint(_in_clause("status", JOB_STATUSES), name="ck_job_status"),
        CheckConstraint("total_amount >= 0", name="ck_job_amount_positive"),
    )

    locations = relationship(
        "JobLocation",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="JobLocation.location",
    )
    requests = relationship("JobRequest", back_populates="job", cascade="all, delete-orphan")
    requirements = relationship("JobService", back_populates="job", cascade="all, delete-orphan")
    involvements = relationship("JobPayment", back_populates="job", cascade="all, delete-orphan")
    review_links = relationship("ReviewJob", back_populates="job", cascade="all, delete-orphan")


# ─── 5. Job Locations ───────────────────────────────────────────────────────


class JobLocation(Base):
    __tablename__ = "job_locations"

    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True)
    location = Column(String(255), primary_key=True)

    job = relationship("Job", back_populates="locations")


# ─── 6. Services ────────────────────────────────────────────────────────────


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")

    requirements = relationship("JobService", back_populates="service", cascade="all, delete-orphan")


# ─── 7. Payments ────────────────────────────────────────────────────────────


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    due_date = Column(Date, nullable=False)
    payment_date = Column(Date)  # set when status becomes paid
    status = Column(String(20), nullable=False, default="pending")
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(20), nullable=False, default="bank_transfer")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_payments_status_due", "status", "due_date"),
        CheckConstraint(_in_clause("status", PAYMENT_STATUSES), name="ck_payment_status"),
        CheckConstraint(_in_clause("method", PAYMENT_METHODS), name="ck_payment_method"),
        CheckConstraint("amount >= 0", name="ck_payment_amount_positive"),
    )

    involvements = relationship("JobPayment", back_populates="payment", cascade="all, delete-orphan")


# ─── 8. Reviews ─────────────────────────────────────────────────────────────


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, default=date.today)
    comment = Column(Text, nullable=False, default="")

    job_links = relationship("ReviewJob", back_populates="review", cascade="all, delete-orphan")
    authors = relationship("ReviewAuthor", back_populates="review", cascade="all, delete-orphan")


# ─── 9-13. Associations ─────────────────────────────────────────────────────


class JobRequest(Base):
    __tablename__ = "requests"

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True)

    customer = relationship("Customer", back_populates="requests")
    job = relationship("Job", back_populates="requests")


class JobService(Base):
    __tablename__ = "requires"

    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True)

    job = relationship("Job", back_populates="requirements")
    service = relationship("Service", back_populates="requirements")


class JobPayment(Base):
    __tablename__ = "involves"

    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True)
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="CASCADE"), primary_key=True)

    job = relationship("Job", back_populates="involvements")
    payment = relationship("Payment", back_populates="involvements")


class ReviewJob(Base):
    __tablename__ = "review_for_job"

    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True)

    review = relationship("Review", back_populates="job_links")
    job = relationship("Job", back_populates="review_links")


class ReviewAuthor(Base):
    __tablename__ = "gives"

    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True)

    review = relationship("Review", back_populates="authors")
    customer = relationship("Customer", back_populates="reviews_given")
