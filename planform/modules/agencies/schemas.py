from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from planform.core.schemas import CamelModel


class AgencyPublicOut(CamelModel):
    """Public projection; never carries the api key."""

    id: int
    name: str
    logo_url: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    booking_link: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    background_color: Optional[str] = None


class AgencyCreateIn(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    website_url: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    booking_link: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, max_length=20)
    secondary_color: Optional[str] = Field(default=None, max_length=20)
    background_color: Optional[str] = Field(default=None, max_length=20)
    text_color: Optional[str] = Field(default=None, max_length=20)
    currency: str = Field(default="$", min_length=1, max_length=1)


class AgencyOut(AgencyPublicOut):
    """Owner view returned on creation; includes the embed api key."""

    website_url: Optional[str] = None
    description: Optional[str] = None
    text_color: Optional[str] = None
    currency: str = "$"
    is_active: bool = True
    api_key: Optional[str] = None


class ServiceIn(CamelModel):
    service_id: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    outcomes: List[str] = Field(default_factory=list)
    price_lower: Optional[int] = None
    price_upper: Optional[int] = None
    when_to_recommend: List[str] = Field(default_factory=list)
    is_active: bool = True


class ServiceOut(CamelModel):
    id: int
    agency_id: int
    service_id: str
    name: str
    description: str
    outcomes: List[str] = Field(default_factory=list)
    price_lower: Optional[int] = None
    price_upper: Optional[int] = None
    when_to_recommend: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
