import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from config.settings import settings
from core.entities.client import Client
from core.entities.user import Role
from core.services.payment_provider import PaymentProvider
from core.use_cases.audit_use_cases import record_event
from core.use_cases.checkout_use_cases import CheckoutPassenger, place_order, request_checkout_payment
from infrastructure.db.client_repository import SQLiteClientRepository
from infrastructure.db.express_repository import SQLiteExpressRepository
from infrastructure.db.finance_repository import SQLiteFinanceRepository
from infrastructure.db.reservation_repository import SQLiteReservationRepository
from infrastructure.db.sqlite import TransportConnection, SQLiteAuditRepository, atomic
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_db, get_client_repo, get_reservation_repo, get_trip_repo, get_express_repo,
    get_finance_repo, get_audit_repo, get_payment_provider, get_portal_client, http_error, request_meta,
)
from infrastructure.web.schemas import (
    ClientRequest, ClientUpdateRequest, ClientResponse, ClientNoteRequest, ClientNoteResponse,
    ProfileUpdateRequest, DashboardResponse, ReservationResponse, ParcelResponse,
    CheckoutRequest, CheckoutResponse, PaymentResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])
portal_router = APIRouter(prefix="/api/client", tags=["client portal"])

crm_readers = authorize(Role.ADMIN, Role.OPERACIONAL, Role.VENDAS, Role.FINANCEIRO)
crm_admin = authorize(Role.ADMIN)


def _client_or_404(clients: SQLiteClientRepository, client_id: int, organization_id: int) -> Client:
    client = clients.get_client(client_id, organization_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


# --- CRM ---

@router.get("", response_model=List[ClientResponse])
def list_clients(
    search: Optional[str] = None,
    ctx: AuthContext = Depends(crm_readers),
    clients: SQLiteClientRepository = Depends(get_client_repo),
):
    try:
        return [ClientResponse.model_validate(c) for c in clients.list_clients(ctx.organization_id, search)]
    except Exception as e:
        raise http_error(e, "Failed to fetch clients")

@router.get("/{client_id}", response_model=ClientResponse)
def get_client(client_id: int, ctx: AuthContext = Depends(crm_readers),
               clients: SQLiteClientRepository = Depends(get_client_repo)):
    return ClientResponse.model_validate(_client_or_404(clients, client_id, ctx.organization_id))

@router.post("", response_model=ClientResponse, status_code=201)
def add_client(
    payload: ClientRequest,
    request: Request,
    ctx: AuthContext = Depends(crm_readers),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    data = payload.model_dump()
    data["credits"] = data.get("credits") or Decimal("0")
    try:
        client = clients.create_client(Client(id=None, organization_id=ctx.organization_id, **data))
    except Exception as e:
        raise http_error(e, "Failed to create client")
    record_event(audit, "CLIENT_CREATE", "client", client.id, ctx.organization_id, ctx.user.id,
                 new_data={"name": client.name, "email": client.email}, **request_meta(request))
    return ClientResponse.model_validate(client)

@router.put("/{client_id}", response_model=ClientResponse)
def edit_client(
    client_id: int,
    payload: ClientUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(crm_readers),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    before = _client_or_404(clients, client_id, ctx.organization_id)
    changes = payload.model_dump(exclude_unset=True)
    try:
        client = clients.update_client(client_id, changes) or before
    except Exception as e:
        raise http_error(e, "Failed to update client")
    record_event(audit, "CLIENT_UPDATE", "client", client_id, ctx.organization_id, ctx.user.id,
                 old_data={"credits": before.credits}, new_data=changes, **request_meta(request))
    return ClientResponse.model_validate(client)

@router.delete("/{client_id}")
def remove_client(
    client_id: int,
    request: Request,
    ctx: AuthContext = Depends(crm_admin),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    if not clients.delete_client(ctx.organization_id, client_id):
        raise HTTPException(status_code=404, detail="Client not found")
    record_event(audit, "CLIENT_DELETE", "client", client_id, ctx.organization_id, ctx.user.id,
                 **request_meta(request))
    return {"success": True}

@router.get("/{client_id}/notes", response_model=List[ClientNoteResponse])
def list_notes(client_id: int, ctx: AuthContext = Depends(crm_readers),
               clients: SQLiteClientRepository = Depends(get_client_repo)):
    _client_or_404(clients, client_id, ctx.organization_id)
    return [ClientNoteResponse.model_validate(n) for n in clients.list_notes(client_id)]

@router.post("/{client_id}/notes", response_model=ClientNoteResponse, status_code=201)
def add_note(
    client_id: int,
    payload: ClientNoteRequest,
    ctx: AuthContext = Depends(crm_readers),
    clients: SQLiteClientRepository = Depends(get_client_repo),
):
    _client_or_404(clients, client_id, ctx.organization_id)
    return ClientNoteResponse.model_validate(clients.add_note(client_id, payload.content, ctx.user.id))


# --- customer portal ---

@portal_router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    client: Client = Depends(get_portal_client),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
    express: SQLiteExpressRepository = Depends(get_express_repo),
):
    try:
        return DashboardResponse(
            profile=ClientResponse.model_validate(client),
            reservations=[ReservationResponse.model_validate(r) for r in reservations.list_for_client(client.id)],
            parcels=[ParcelResponse.model_validate(p) for p in express.list_parcels_for_client(client.id)],
        )
    except Exception as e:
        raise http_error(e, "Failed to load dashboard")

@portal_router.get("/profile", response_model=ClientResponse)
def get_profile(client: Client = Depends(get_portal_client)):
    return ClientResponse.model_validate(client)

@portal_router.put("/profile", response_model=ClientResponse)
def edit_profile(
    payload: ProfileUpdateRequest,
    client: Client = Depends(get_portal_client),
    clients: SQLiteClientRepository = Depends(get_client_repo),
):
    fields = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if not fields:
        return ClientResponse.model_validate(client)
    try:
        updated = clients.update_client(client.id, fields)
    except Exception as e:
        raise http_error(e, "Failed to update profile")
    return ClientResponse.model_validate(updated)

@portal_router.post("/checkout", response_model=CheckoutResponse, status_code=201)
def checkout(
    payload: CheckoutRequest,
    client: Client = Depends(get_portal_client),
    conn: TransportConnection = Depends(get_db),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
    clients: SQLiteClientRepository = Depends(get_client_repo),
    finance: SQLiteFinanceRepository = Depends(get_finance_repo),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    passengers = [CheckoutPassenger(**p.model_dump()) for p in payload.reservations]
    try:
        with atomic(conn):
            order = place_order(
                trips=trips, reservations=reservations, clients=clients, finance=finance,
                client=client, trip_id=payload.trip_id, passengers=passengers,
                credits_requested=payload.credits_used, is_partial=payload.is_partial,
                entry_rate=settings.PARTIAL_ENTRY_RATE, client_entry_value=payload.entry_value,
            )
    except Exception as e:
        raise http_error(e, "Failed to process checkout")

    # the order is committed; a gateway failure leaves it PENDING for the expiry job
    try:
        receipt = request_checkout_payment(provider, reservations, order, payload.payment_type)
    except Exception:
        logger.exception("Payment request crashed for order %s", order.reservations[0].ticket_code)
        receipt = None

    booked = [reservations.get_reservation(r.id) or r for r in order.reservations]
    totals = order.totals
    return CheckoutResponse(
        reservations=[ReservationResponse.model_validate(r) for r in booked],
        total=float(totals.total),
        credits_applied=float(totals.credits_applied),
        entry_value=float(totals.entry_value),
        remaining=float(totals.remaining),
        is_partial=totals.is_partial,
        payment=PaymentResponse(**vars(receipt)) if receipt is not None else None,
    )
