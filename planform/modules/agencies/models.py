from __future__ import annotations

from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Agency(SQLModel, table=True):
    __tablename__ = "agencies"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    booking_link: Optional[str] = None
    description: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    # embed credential; never part of the public projection
    api_key: Optional[str] = Field(default=None, unique=True, index=True)
    is_active: bool = Field(default=True)
    currency: str = Field(default="$")

    created_at: str
    updated_at: str


class Service(SQLModel, table=True):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("agency_id", "service_id", name="uq_services_agency_service"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    agency_id: int = Field(foreign_key="agencies.id", index=True)
    service_id: str
    name: str
    description: str
    outcomes_json: str = Field(default="[]")
    price_lower: Optional[int] = None
    price_upper: Optional[int] = None
    when_to_recommend_json: str = Field(default="[]")
    is_active: bool = Field(default=True)

    created_at: str
    updated_at: str
