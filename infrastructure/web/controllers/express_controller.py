from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from core.entities.user import Role
from core.use_cases.audit_use_cases import record_event
from core.use_cases.express_use_cases import (
    create_parcel, update_parcel, delete_parcel, create_charter, update_charter, delete_charter,
)
from infrastructure.db.client_repository import SQLiteClientRepository
from infrastructure.db.express_repository import SQLiteExpressRepository
from infrastructure.db.finance_repository import SQLiteFinanceRepository
from infrastructure.db.fleet_repository import SQLiteFleetRepository
from infrastructure.db.sqlite import TransportConnection, SQLiteAuditRepository, atomic
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_db, get_express_repo, get_trip_repo, get_client_repo, get_fleet_repo,
    get_finance_repo, get_audit_repo, http_error, request_meta,
)
from infrastructure.web.schemas import (
    ParcelRequest, ParcelUpdateRequest, ParcelResponse, CharterRequest, CharterUpdateRequest, CharterResponse,
)

parcels_router = APIRouter(prefix="/api/parcels", tags=["parcels"])
charters_router = APIRouter(prefix="/api/charters", tags=["charters"])

express_staff = authorize(Role.ADMIN, Role.OPERACIONAL, Role.VENDAS)
express_admins = authorize(Role.ADMIN, Role.OPERACIONAL)


# parcels

@parcels_router.get("", response_model=List[ParcelResponse])
def list_parcels(
    status: Optional[str] = None,
    tracking_code: Optional[str] = None,
    sender_name: Optional[str] = None,
    recipient_name: Optional[str] = None,
    trip_id: Optional[int] = None,
    ctx: AuthContext = Depends(express_staff),
    express: SQLiteExpressRepository = Depends(get_express_repo),
):
    filters = {"status": status, "tracking_code": tracking_code, "sender_name": sender_name,
               "recipient_name": recipient_name, "trip_id": trip_id}
    try:
        return [ParcelResponse.model_validate(p) for p in express.list_parcels(ctx.organization_id, filters)]
    except Exception as e:
        raise http_error(e, "Failed to fetch parcels")

@parcels_router.get("/{parcel_id}", response_model=ParcelResponse)
def get_parcel(
    parcel_id: int,
    ctx: AuthContext = Depends(express_staff),
    express: SQLiteExpressRepository = Depends(get_express_repo),
):
    parcel = express.get_parcel(ctx.organization_id, parcel_id)
    if parcel is None:
        raise HTTPException(status_code=404, detail="Parcel not found")
    return ParcelResponse.model_validate(parcel)

@parcels_router.post("", response_model=ParcelResponse, status_code=201)
def add_parcel(
    payload: ParcelRequest,
    request: Request,
    ctx: AuthContext = Depends(express_staff),
    conn: TransportConnection = Depends(get_db),
    express: SQLiteExpressRepository = Depends(get_express_repo),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            parcel = create_parcel(express, trips, clients, finance, ctx.organization_id,
                                   payload.model_dump(), ctx.user.id)
    except Exception as e:
        raise http_error(e, "Failed to create parcel")
    record_event(audit, "PARCEL_CREATE", "parcel", parcel.id, ctx.organization_id, ctx.user.id,
                 new_data={"tracking_code": parcel.tracking_code, "price": parcel.price},
                 **request_meta(request))
    return ParcelResponse.model_validate(parcel)

@parcels_router.put("/{parcel_id}", response_model=ParcelResponse)
def edit_parcel(
    parcel_id: int,
    payload: ParcelUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(express_staff),
    conn: TransportConnection = Depends(get_db),
    express: SQLiteExpressRepository = Depends(get_express_repo),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    changes = payload.model_dump(exclude_unset=True)
    old = express.get_parcel(ctx.organization_id, parcel_id)
    try:
        with atomic(conn):
            parcel = update_parcel(express, trips, clients, finance, ctx.organization_id, parcel_id, changes)
    except Exception as e:
        raise http_error(e, "Failed to update parcel")
    record_event(audit, "PARCEL_UPDATE", "parcel", parcel_id, ctx.organization_id, ctx.user.id,
                 old_data={"status": old.status, "price": old.price} if old else None,
                 new_data=changes, **request_meta(request))
    return ParcelResponse.model_validate(parcel)

@parcels_router.delete("/{parcel_id}")
def remove_parcel(
    parcel_id: int,
    request: Request,
    ctx: AuthContext = Depends(express_admins),
    conn: TransportConnection = Depends(get_db),
    express: SQLiteExpressRepository = Depends(get_express_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            parcel = delete_parcel(express, finance, ctx.organization_id, parcel_id)
    except Exception as e:
        raise http_error(e, "Failed to delete parcel")
    record_event(audit, "PARCEL_DELETE", "parcel", parcel_id, ctx.organization_id, ctx.user.id,
                 old_data={"tracking_code": parcel.tracking_code}, **request_meta(request))
    return {"success": True}


# charters

@charters_router.get("", response_model=List[CharterResponse])
def list_charters(
    status: Optional[str] = None,
    contact_name: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    ctx: AuthContext = Depends(express_staff),
    express: SQLiteExpressRepository = Depends(get_express_repo),
):
    filters = {"status": status, "contact_name": contact_name, "start_date": start_date, "end_date": end_date}
    try:
        return [CharterResponse.model_validate(c) for c in express.list_charters(ctx.organization_id, filters)]
    except Exception as e:
        raise http_error(e, "Failed to fetch charter requests")

@charters_router.get("/{charter_id}", response_model=CharterResponse)
def get_charter(
    charter_id: int,
    ctx: AuthContext = Depends(express_staff),
    express: SQLiteExpressRepository = Depends(get_express_repo),
):
    charter = express.get_charter(ctx.organization_id, charter_id)
    if charter is None:
        raise HTTPException(status_code=404, detail="Charter request not found")
    return CharterResponse.model_validate(charter)

@charters_router.post("", response_model=CharterResponse, status_code=201)
def add_charter(
    payload: CharterRequest,
    request: Request,
    ctx: AuthContext = Depends(express_staff),
    conn: TransportConnection = Depends(get_db),
    express: SQLiteExpressRepository = Depends(get_express_repo),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            charter = create_charter(express, fleet, clients, finance, ctx.organization_id,
                                     payload.model_dump(), ctx.user.id)
    except Exception as e:
        raise http_error(e, "Failed to create charter request")
    record_event(audit, "CHARTER_CREATE", "charter", charter.id, ctx.organization_id, ctx.user.id,
                 new_data={"contact_name": charter.contact_name, "status": charter.status},
                 **request_meta(request))
    return CharterResponse.model_validate(charter)

@charters_router.put("/{charter_id}", response_model=CharterResponse)
def edit_charter(
    charter_id: int,
    payload: CharterUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(express_staff),
    conn: TransportConnection = Depends(get_db),
    express: SQLiteExpressRepository = Depends(get_express_repo),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        with atomic(conn):
            charter = update_charter(express, fleet, clients, finance, ctx.organization_id, charter_id, changes)
    except Exception as e:
        raise http_error(e, "Failed to update charter request")
    record_event(audit, "CHARTER_UPDATE", "charter", charter_id, ctx.organization_id, ctx.user.id,
                 new_data=changes, **request_meta(request))
    return CharterResponse.model_validate(charter)

@charters_router.delete("/{charter_id}")
def remove_charter(
    charter_id: int,
    request: Request,
    ctx: AuthContext = Depends(express_admins),
    conn: TransportConnection = Depends(get_db),
    express: SQLiteExpressRepository = Depends(get_express_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            delete_charter(express, finance, ctx.organization_id, charter_id)
    except Exception as e:
        raise http_error(e, "Failed to delete charter request")
    record_event(audit, "CHARTER_DELETE", "charter", charter_id, ctx.organization_id, ctx.user.id,
                 **request_meta(request))
    return {"success": True}
