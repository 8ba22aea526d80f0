import logging
from typing import List, Optional, Dict, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request

from config.settings import settings
from core.entities.finance import CostCenter
from core.entities.user import Role
from core.errors import NotFoundError
from core.services.transaction_mapping import map_transaction
from core.use_cases.audit_use_cases import record_event
from core.use_cases.finance_use_cases import (
    create_transaction, update_transaction, delete_transaction,
    create_bank_account, update_bank_account, delete_cost_center, save_category,
    trip_financial_summary,
)
from infrastructure.db.finance_repository import SQLiteFinanceRepository
from infrastructure.db.reservation_repository import SQLiteReservationRepository
from infrastructure.db.sqlite import TransportConnection, SQLiteAuditRepository, atomic
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_db, get_finance_repo, get_reservation_repo, get_trip_repo,
    get_audit_repo, http_error, request_meta,
)
from infrastructure.web.schemas import (
    BankAccountRequest, BankAccountUpdateRequest, BankAccountResponse,
    CostCenterRequest, CostCenterUpdateRequest, CostCenterResponse,
    CategoryRequest, CategoryUpdateRequest, CategoryResponse, TripSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/finance", tags=["finance"])

finance_roles = authorize(Role.ADMIN, Role.FINANCEIRO)


# --- bank accounts ---

@router.get("/accounts", response_model=List[BankAccountResponse])
def list_accounts(ctx: AuthContext = Depends(finance_roles), repo: SQLiteFinanceRepository = Depends(get_finance_repo)):
    try:
        return [BankAccountResponse.model_validate(a) for a in repo.list_bank_accounts(ctx.organization_id)]
    except Exception as e:
        raise http_error(e, "Failed to fetch bank accounts")

@router.post("/accounts", response_model=BankAccountResponse, status_code=201)
def add_account(
    payload: BankAccountRequest,
    ctx: AuthContext = Depends(finance_roles),
    conn: TransportConnection = Depends(get_db),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    try:
        with atomic(conn):
            account = create_bank_account(repo, ctx.organization_id, **payload.model_dump())
    except Exception as e:
        raise http_error(e, "Failed to create bank account")
    return BankAccountResponse.model_validate(account)

@router.put("/accounts/{account_id}", response_model=BankAccountResponse)
def edit_account(
    account_id: int,
    payload: BankAccountUpdateRequest,
    ctx: AuthContext = Depends(finance_roles),
    conn: TransportConnection = Depends(get_db),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    try:
        with atomic(conn):
            account = update_bank_account(repo, ctx.organization_id, account_id, payload.model_dump(exclude_unset=True))
    except Exception as e:
        raise http_error(e, "Failed to update bank account")
    return BankAccountResponse.model_validate(account)


# --- cost centers ---

@router.get("/cost-centers", response_model=List[CostCenterResponse])
def list_cost_centers(ctx: AuthContext = Depends(finance_roles), repo: SQLiteFinanceRepository = Depends(get_finance_repo)):
    return [CostCenterResponse.model_validate(c) for c in repo.list_cost_centers(ctx.organization_id)]

@router.post("/cost-centers", response_model=CostCenterResponse, status_code=201)
def add_cost_center(
    payload: CostCenterRequest,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    try:
        cost_center = repo.create_cost_center(CostCenter(id=None, organization_id=ctx.organization_id,
                                                         **payload.model_dump()))
    except Exception as e:
        raise http_error(e, "Failed to create cost center")
    return CostCenterResponse.model_validate(cost_center)

@router.put("/cost-centers/{cost_center_id}", response_model=CostCenterResponse)
def edit_cost_center(
    cost_center_id: int,
    payload: CostCenterUpdateRequest,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    fields = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    cost_center = repo.update_cost_center(ctx.organization_id, cost_center_id, fields)
    if cost_center is None:
        raise HTTPException(status_code=404, detail="Cost center not found")
    return CostCenterResponse.model_validate(cost_center)

@router.delete("/cost-centers/{cost_center_id}")
def remove_cost_center(
    cost_center_id: int,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    try:
        delete_cost_center(repo, ctx.organization_id, cost_center_id)
    except Exception as e:
        raise http_error(e, "Failed to delete cost center")
    return {"success": True}


# --- categories ---

@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(
    cost_center_id: Optional[int] = None,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    return [CategoryResponse.model_validate(c) for c in repo.list_categories(ctx.organization_id, cost_center_id)]

@router.post("/categories", response_model=CategoryResponse, status_code=201)
def add_category(
    payload: CategoryRequest,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    try:
        category = save_category(repo, ctx.organization_id, payload.model_dump())
    except Exception as e:
        raise http_error(e, "Failed to create category")
    return CategoryResponse.model_validate(category)

@router.put("/categories/{category_id}", response_model=CategoryResponse)
def edit_category(
    category_id: int,
    payload: CategoryUpdateRequest,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    try:
        category = save_category(repo, ctx.organization_id, payload.model_dump(exclude_unset=True), category_id)
    except Exception as e:
        raise http_error(e, "Failed to update category")
    return CategoryResponse.model_validate(category)

@router.delete("/categories/{category_id}")
def remove_category(
    category_id: int,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
):
    if not repo.delete_category(ctx.organization_id, category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True}


# --- transactions ---
# bodies are free-form dicts: legacy field names are accepted alongside the current ones

@router.get("/transactions")
def list_transactions(
    type: Optional[str] = None,
    status: Optional[str] = None,
    trip_id: Optional[int] = None,
    limit: int = Query(500, ge=1, le=5000),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
) -> List[Dict[str, Any]]:
    try:
        rows = repo.list_transactions(
            ctx.organization_id,
            type=type.upper() if type else None,
            status=status.upper() if status else None,
            trip_id=trip_id, limit=limit, offset=offset,
        )
        return [map_transaction(tx) for tx in rows]
    except Exception as e:
        raise http_error(e, "Failed to fetch transactions")

@router.get("/transactions/{transaction_id}")
def get_transaction(
    transaction_id: int,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
) -> Dict[str, Any]:
    tx = repo.get_transaction(ctx.organization_id, transaction_id)
    if tx is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return map_transaction(tx)

@router.post("/transactions", status_code=201)
def add_transaction(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    ctx: AuthContext = Depends(finance_roles),
    conn: TransportConnection = Depends(get_db),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
) -> Dict[str, Any]:
    try:
        with atomic(conn):
            tx = create_transaction(repo, ctx.organization_id, payload, created_by=ctx.user.id,
                                    default_currency=settings.DEFAULT_CURRENCY)
    except Exception as e:
        raise http_error(e, "Failed to create transaction")
    data = map_transaction(tx)
    record_event(audit, "TRANSACTION_CREATE", "transaction", tx.id, ctx.organization_id, ctx.user.id,
                 new_data=data, **request_meta(request))
    return data

@router.put("/transactions/{transaction_id}")
def edit_transaction(
    transaction_id: int,
    request: Request,
    payload: Dict[str, Any] = Body(...),
    ctx: AuthContext = Depends(finance_roles),
    conn: TransportConnection = Depends(get_db),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
) -> Dict[str, Any]:
    before = repo.get_transaction(ctx.organization_id, transaction_id)
    try:
        with atomic(conn):
            tx = update_transaction(repo, ctx.organization_id, transaction_id, payload)
    except Exception as e:
        raise http_error(e, "Failed to update transaction")
    data = map_transaction(tx)
    record_event(audit, "TRANSACTION_UPDATE", "transaction", transaction_id, ctx.organization_id, ctx.user.id,
                 old_data=map_transaction(before) if before else None, new_data=data, **request_meta(request))
    return data

@router.delete("/transactions/{transaction_id}")
def remove_transaction(
    transaction_id: int,
    request: Request,
    ctx: AuthContext = Depends(finance_roles),
    conn: TransportConnection = Depends(get_db),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        with atomic(conn):
            deleted = delete_transaction(repo, ctx.organization_id, transaction_id)
    except Exception as e:
        raise http_error(e, "Failed to delete transaction")
    record_event(audit, "TRANSACTION_DELETE", "transaction", transaction_id, ctx.organization_id, ctx.user.id,
                 old_data=map_transaction(deleted), **request_meta(request))
    return {"success": True}


@router.get("/trips/{trip_id}/summary", response_model=TripSummaryResponse)
def trip_summary(
    trip_id: int,
    ctx: AuthContext = Depends(finance_roles),
    repo: SQLiteFinanceRepository = Depends(get_finance_repo),
    trips: SQLiteTripRepository = Depends(get_trip_repo),
    reservations: SQLiteReservationRepository = Depends(get_reservation_repo),
):
    try:
        if trips.get_trip(trip_id, ctx.organization_id) is None:
            raise NotFoundError("Trip not found")
        summary = trip_financial_summary(repo, reservations, ctx.organization_id, trip_id)
    except Exception as e:
        raise http_error(e, "Failed to compute trip summary")
    return TripSummaryResponse.model_validate(summary)
