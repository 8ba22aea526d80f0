from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from core.entities.user import Role
from core.use_cases.audit_use_cases import record_event
from core.use_cases.user_use_cases import create_organization, update_organization
from infrastructure.db.sqlite import SQLiteUserRepository, SQLiteAuditRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_user_repo, get_audit_repo, http_error, request_meta,
)
from infrastructure.web.schemas import (
    OrganizationRequest, OrganizationUpdateRequest, OrganizationResponse, AuditLogResponse,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])

admin_only = authorize(Role.ADMIN)


@router.get("/organizations", response_model=List[OrganizationResponse])
def list_organizations(_: AuthContext = Depends(admin_only), repo: SQLiteUserRepository = Depends(get_user_repo)):
    return [OrganizationResponse.model_validate(o) for o in repo.list_organizations()]

@router.post("/organizations", response_model=OrganizationResponse, status_code=201)
def add_organization(
    payload: OrganizationRequest,
    request: Request,
    ctx: AuthContext = Depends(admin_only),
    repo: SQLiteUserRepository = Depends(get_user_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        org = create_organization(repo, payload.name, payload.slug)
    except Exception as e:
        raise http_error(e, "Failed to create organization")
    record_event(audit, "ORGANIZATION_CREATE", "organization", org.id, ctx.organization_id, ctx.user.id,
                 new_data={"name": org.name, "slug": org.slug}, **request_meta(request))
    return OrganizationResponse.model_validate(org)

@router.get("/organizations/{organization_id}", response_model=OrganizationResponse)
def get_organization(
    organization_id: int,
    _: AuthContext = Depends(admin_only),
    repo: SQLiteUserRepository = Depends(get_user_repo),
):
    org = repo.get_organization(organization_id)
    if org is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return OrganizationResponse.model_validate(org)

@router.put("/organizations/{organization_id}", response_model=OrganizationResponse)
def edit_organization(
    organization_id: int,
    payload: OrganizationUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(admin_only),
    repo: SQLiteUserRepository = Depends(get_user_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        org = update_organization(repo, organization_id, payload.model_dump(exclude_unset=True))
    except Exception as e:
        raise http_error(e, "Failed to update organization")
    record_event(audit, "ORGANIZATION_UPDATE", "organization", organization_id, ctx.organization_id, ctx.user.id,
                 new_data=payload.model_dump(exclude_unset=True), **request_meta(request))
    return OrganizationResponse.model_validate(org)


@router.get("/audit-logs", response_model=List[AuditLogResponse])
def list_audit_logs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(admin_only),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        events = audit.list_events(ctx.organization_id, limit=limit, offset=offset)
    except Exception as e:
        raise http_error(e, "Failed to fetch audit logs")
    return [AuditLogResponse.model_validate(ev) for ev in events]
