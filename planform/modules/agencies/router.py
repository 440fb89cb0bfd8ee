from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request

from planform.core.observability import emit, request_id_of
from planform.modules.auth.deps import current_user
from planform.modules.users.models import User

from .schemas import AgencyCreateIn, AgencyOut, AgencyPublicOut, ServiceIn, ServiceOut
from .service import (
    create_agency,
    create_service,
    get_agency_by_api_key,
    get_agency_public,
    list_agency_services,
    list_services_for_api_key,
)

router = APIRouter(prefix="/api", tags=["agencies"])


@router.post("/agency", response_model=AgencyOut, status_code=201)
def api_create_agency(body: AgencyCreateIn, request: Request, user: User = Depends(current_user)) -> AgencyOut:
    agency = create_agency(user.id, body.model_dump())
    emit("info", "agencies.created", f"agency {agency['id']} created", request_id_of(request), __name__,
         user_id=user.id, agency_id=agency["id"])
    return AgencyOut(**agency)


@router.get("/agency/{agency_id}", response_model=AgencyPublicOut)
def api_get_agency(agency_id: int = Path(..., ge=1)) -> AgencyPublicOut:
    return AgencyPublicOut(**get_agency_public(agency_id))


@router.get("/agency/{agency_id}/services", response_model=List[ServiceOut])
def api_list_agency_services(agency_id: int = Path(..., ge=1), user: User = Depends(current_user)) -> List[ServiceOut]:
    return [ServiceOut(**s) for s in list_agency_services(user, agency_id)]


@router.post("/agency/{agency_id}/services", response_model=ServiceOut, status_code=201)
def api_create_service(
    body: ServiceIn,
    agency_id: int = Path(..., ge=1),
    user: User = Depends(current_user),
) -> ServiceOut:
    return ServiceOut(**create_service(user, agency_id, body.model_dump()))


@router.get("/planform/agency", response_model=AgencyPublicOut)
def api_agency_by_key(api_key: Optional[str] = Query(None, alias="apiKey")) -> AgencyPublicOut:
    return AgencyPublicOut(**get_agency_by_api_key(api_key))


@router.get("/services", response_model=List[ServiceOut])
def api_services_by_key(api_key: Optional[str] = Query(None, alias="apiKey")) -> List[ServiceOut]:
    return [ServiceOut(**s) for s in list_services_for_api_key(api_key)]
