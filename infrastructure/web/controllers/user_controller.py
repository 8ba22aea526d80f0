import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from core.entities.user import User, Role
from core.use_cases.audit_use_cases import record_event
from core.use_cases.user_use_cases import (
    register_user, authenticate_user, update_user, check_username, suggest_usernames,
)
from infrastructure.db.sqlite import SQLiteUserRepository, SQLiteAuditRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_current_user, get_user_repo, get_audit_repo,
    token_for, http_error, request_meta,
)
from infrastructure.web.schemas import (
    UserResponse, TokenResponse, UserCreateRequest, UserUpdateRequest,
    UsernameCheckResponse, SuggestUsernameRequest, SuggestUsernameResponse,
)

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
users_router = APIRouter(prefix="/api/users", tags=["users"])

basic_security = HTTPBasic()

admin_only = authorize(Role.ADMIN)


@auth_router.post("/login", response_model=TokenResponse)
def login(
    credentials: HTTPBasicCredentials = Depends(basic_security),
    repo: SQLiteUserRepository = Depends(get_user_repo),
):
    """HTTP Basic with an email or a username."""
    user = authenticate_user(repo, login=credentials.username, password=credentials.password)
    if not user:
        logger.info("Failed login for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return TokenResponse(access_token=token_for(user), user=UserResponse.model_validate(user))

@auth_router.get("/me", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)

@auth_router.get("/check-username/{username}", response_model=UsernameCheckResponse)
def check_username_availability(username: str, repo: SQLiteUserRepository = Depends(get_user_repo)):
    return UsernameCheckResponse(**check_username(repo, username))

@auth_router.post("/suggest-username", response_model=SuggestUsernameResponse)
def suggest_username(payload: SuggestUsernameRequest, repo: SQLiteUserRepository = Depends(get_user_repo)):
    if not payload.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    return SuggestUsernameResponse(suggestions=suggest_usernames(repo, payload.name))


@users_router.get("", response_model=List[UserResponse])
def list_users(ctx: AuthContext = Depends(admin_only), repo: SQLiteUserRepository = Depends(get_user_repo)):
    try:
        return [UserResponse.model_validate(u) for u in repo.list_users(ctx.organization_id)]
    except Exception as e:
        raise http_error(e, "Failed to fetch users")

@users_router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, ctx: AuthContext = Depends(admin_only), repo: SQLiteUserRepository = Depends(get_user_repo)):
    user = repo.get_by_id(user_id)
    if user is None or user.organization_id != ctx.organization_id:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)

@users_router.post("", response_model=UserResponse, status_code=201)
def create_user(
    payload: UserCreateRequest,
    request: Request,
    ctx: AuthContext = Depends(admin_only),
    repo: SQLiteUserRepository = Depends(get_user_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        user = register_user(
            repo, email=payload.email, password=payload.password, role=payload.role,
            organization_id=ctx.organization_id, username=payload.username, name=payload.name,
        )
    except Exception as e:
        raise http_error(e, "Failed to create user")
    record_event(audit, "USER_CREATE", "user", user.id, ctx.organization_id, ctx.user.id,
                 new_data={"email": user.email, "role": user.role}, **request_meta(request))
    return UserResponse.model_validate(user)

@users_router.put("/{user_id}", response_model=UserResponse)
def edit_user(
    user_id: int,
    payload: UserUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(admin_only),
    repo: SQLiteUserRepository = Depends(get_user_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        user = update_user(repo, user_id, ctx.organization_id, payload.model_dump(exclude_unset=True))
    except Exception as e:
        raise http_error(e, "Failed to update user")
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    changed = payload.model_dump(exclude_unset=True, exclude={"password"})
    record_event(audit, "USER_UPDATE", "user", user_id, ctx.organization_id, ctx.user.id,
                 new_data=changed, **request_meta(request))
    return UserResponse.model_validate(user)

@users_router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    ctx: AuthContext = Depends(admin_only),
    repo: SQLiteUserRepository = Depends(get_user_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    if user_id == ctx.user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    if not repo.delete_user(user_id, ctx.organization_id):
        raise HTTPException(status_code=404, detail="User not found")
    record_event(audit, "USER_DELETE", "user", user_id, ctx.organization_id, ctx.user.id, **request_meta(request))
    return {"success": True}
