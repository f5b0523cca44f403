"""
Clients Router — CRUD for customers (user account + customer details).
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from db.models import Customer, User

router = APIRouter(prefix="/api/v1/clients", tags=["clients"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    phone: str = ""
    address: str = ""


class ClientUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, min_length=3, max_length=255)
    phone: str | None = None
    address: str | None = None


class ClientResponse(BaseModel):
    id: int
    email: str
    name: str
    created_at: datetime
    address: str | None
    phone: str | None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[ClientResponse])
async def list_clients(db: AsyncSession = Depends(get_db)):
    """List all clients ordered by name."""
    result = await db.execute(
        select(User, Customer)
        .join(Customer, Customer.id == User.id)
        .where(User.user_type == "customer")
        .order_by(User.name)
    )
    return [_serialize_client(user, customer) for user, customer in result.all()]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, db: AsyncSession = Depends(get_db)):
    user, customer = await _get_client_or_404(db, client_id)
    return _serialize_client(user, customer)


@router.post("/", response_model=ClientResponse, status_code=201)
async def create_client(client: ClientCreate, db: AsyncSession = Depends(get_db)):
    """Create a user account and its customer record."""
    await ensure_email_available(db, client.email)

    user = User(email=client.email, name=client.name, user_type="customer")
    db.add(user)
    await db.flush()

    customer = Customer(id=user.id, address=client.address, phone=client.phone)
    db.add(customer)
    await db.commit()
    await db.refresh(user)
    await db.refresh(customer)
    return _serialize_client(user, customer)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(client_id: int, update: ClientUpdate, db: AsyncSession = Depends(get_db)):
    user, customer = await _get_client_or_404(db, client_id)
    fields = update.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in fields and fields["email"] != user.email:
        await ensure_email_available(db, fields["email"])

    for field in ("name", "email"):
        if field in fields:
            setattr(user, field, fields[field])
    for field in ("phone", "address"):
        if field in fields:
            setattr(customer, field, fields[field])

    await db.commit()
    await db.refresh(user)
    await db.refresh(customer)
    return _serialize_client(user, customer)


@router.delete("/{client_id}", status_code=204)
async def delete_client(client_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a client; their job requests and review authorship go with them."""
    user, _customer = await _get_client_or_404(db, client_id)
    await db.delete(user)
    await db.commit()


async def _get_client_or_404(db: AsyncSession, client_id: int) -> tuple[User, Customer]:
    result = await db.execute(
        select(User, Customer).join(Customer, Customer.id == User.id).where(Customer.id == client_id)
    )
    row = result.one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return row[0], row[1]


async def ensure_email_available(db: AsyncSession, email: str) -> None:
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(status_code=409, detail="Email already exists")


def _serialize_client(user: User, customer: Customer) -> dict:
    return {
        "id": customer.id,
        "email": user.email,
        "name": user.name,
        "created_at": user.created_at,
        "address": customer.address,
        "phone": customer.phone,
    }
