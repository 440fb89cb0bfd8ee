from __future__ import annotations

import json
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from planform.core.db import new_session
from planform.core.errors import Conflict, Forbidden, NotFound, Unauthorized
from planform.core.ids import now_iso
from planform.modules.users.models import User

from .models import Agency, Service

PUBLIC_FIELDS = (
    "id",
    "name",
    "logo_url",
    "contact_number",
    "email",
    "booking_link",
    "primary_color",
    "secondary_color",
    "background_color",
)


def _safe_json_list(v: Any) -> List[str]:
    if not v:
        return []
    if isinstance(v, list):
        return v
    try:
        out = json.loads(v)
    except (TypeError, ValueError):
        return []
    return out if isinstance(out, list) else []


def _public(agency: Agency) -> Dict[str, Any]:
    return {k: getattr(agency, k) for k in PUBLIC_FIELDS}


def _row_to_service(s: Service) -> Dict[str, Any]:
    d = s.model_dump()
    d["outcomes"] = _safe_json_list(d.pop("outcomes_json", None))
    d["when_to_recommend"] = _safe_json_list(d.pop("when_to_recommend_json", None))
    return d


def _agency_for_key(session, api_key: Optional[str]) -> Agency:
    if not api_key:
        raise Unauthorized("Valid API key required")
    agency = session.exec(select(Agency).where(Agency.api_key == api_key)).first()
    if agency is None:
        raise NotFound("Agency not found")
    return agency


def get_agency_public(agency_id: int) -> Dict[str, Any]:
    with new_session() as session:
        agency = session.get(Agency, agency_id)
        if agency is None:
            raise NotFound("Agency not found")
        return _public(agency)


def get_agency_by_api_key(api_key: Optional[str]) -> Dict[str, Any]:
    with new_session() as session:
        return _public(_agency_for_key(session, api_key))


def list_services_for_api_key(api_key: Optional[str]) -> List[Dict[str, Any]]:
    """Active services of the agency owning ``api_key``; unknown key is 404, not []."""
    with new_session() as session:
        agency = _agency_for_key(session, api_key)
        rows = session.exec(
            select(Service)
            .where(Service.agency_id == agency.id, Service.is_active.is_(True))
            .order_by(Service.name.asc(), Service.id.asc())
        ).all()
        return [_row_to_service(r) for r in rows]


def create_agency(user_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Create an agency with a fresh api key and attach the caller to it."""
    with new_session() as session:
        try:
            user = session.get(User, user_id)
            if user is None:
                raise Unauthorized()
            now = now_iso()
            agency = Agency(**fields, api_key=str(uuid.uuid4()), is_active=True, created_at=now, updated_at=now)
            session.add(agency)
            session.flush()

            user.agency_id = agency.id
            user.updated_at = now
            session.add(user)
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(agency)
        return agency.model_dump()


def _require_member(user: User, agency_id: int) -> None:
    if user.agency_id != agency_id:
        raise Forbidden()


def list_agency_services(user: User, agency_id: int) -> List[Dict[str, Any]]:
    _require_member(user, agency_id)
    with new_session() as session:
        if session.get(Agency, agency_id) is None:
            raise NotFound("Agency not found")
        rows = session.exec(
            select(Service).where(Service.agency_id == agency_id).order_by(Service.name.asc(), Service.id.asc())
        ).all()
        return [_row_to_service(r) for r in rows]


def create_service(user: User, agency_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    _require_member(user, agency_id)
    with new_session() as session:
        if session.get(Agency, agency_id) is None:
            raise NotFound("Agency not found")

        now = now_iso()
        data = dict(fields)
        svc = Service(
            agency_id=agency_id,
            service_id=data["service_id"],
            name=data["name"],
            description=data["description"],
            outcomes_json=json.dumps(data.get("outcomes") or [], ensure_ascii=False),
            price_lower=data.get("price_lower"),
            price_upper=data.get("price_upper"),
            when_to_recommend_json=json.dumps(data.get("when_to_recommend") or [], ensure_ascii=False),
            is_active=data.get("is_active", True),
            created_at=now,
            updated_at=now,
        )
        try:
            session.add(svc)
            session.commit()
        except IntegrityError:
            session.rollback()
            raise Conflict("A service with this ID already exists")
        session.refresh(svc)
        return _row_to_service(svc)
