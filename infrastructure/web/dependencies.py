import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, Header, Request, status
from jose import jwt, JWTError

from config.settings import settings
from core.entities.client import Client
from core.entities.user import User, Role
from core.errors import NotFoundError, ConflictError, BusinessRuleError
from core.services.payment_provider import PaymentProvider
from infrastructure.db.sqlite import (
    TransportConnection, connect, SQLiteUserRepository, SQLiteAuditRepository,
)
from infrastructure.db.finance_repository import SQLiteFinanceRepository
from infrastructure.db.trip_repository import SQLiteTripRepository
from infrastructure.db.reservation_repository import SQLiteReservationRepository
from infrastructure.db.fleet_repository import SQLiteFleetRepository
from infrastructure.db.client_repository import SQLiteClientRepository
from infrastructure.db.express_repository import SQLiteExpressRepository
from infrastructure.payments.stub_provider import StubPaymentProvider
from infrastructure.payments.webhook_provider import WebhookPaymentProvider

logger = logging.getLogger(__name__)


def get_db():
    conn = connect(settings.DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def get_user_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteUserRepository:
    return SQLiteUserRepository(conn)

def get_audit_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteAuditRepository:
    return SQLiteAuditRepository(conn)

def get_finance_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteFinanceRepository:
    return SQLiteFinanceRepository(conn)

def get_trip_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteTripRepository:
    return SQLiteTripRepository(conn)

def get_reservation_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteReservationRepository:
    return SQLiteReservationRepository(conn)

def get_fleet_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteFleetRepository:
    return SQLiteFleetRepository(conn)

def get_client_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteClientRepository:
    return SQLiteClientRepository(conn)

def get_express_repo(conn: TransportConnection = Depends(get_db)) -> SQLiteExpressRepository:
    return SQLiteExpressRepository(conn)


def get_payment_provider() -> PaymentProvider:
    if settings.PAYMENT_PROVIDER == "webhook":
        return WebhookPaymentProvider(settings.PAYMENT_WEBHOOK_URL, timeout=settings.PAYMENT_TIMEOUT_SECONDS)
    return StubPaymentProvider()


# jwt
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def token_for(user: User) -> str:
    claims: Dict[str, Any] = {"sub": str(user.id), "role": user.role}
    if user.organization_id is not None:
        claims["org"] = user.organization_id
    return create_access_token(claims)

def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization.split(" ", 1)[1]

def get_token_claims(token: str = Depends(get_bearer_token)) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload

def get_current_user(
    claims: Dict[str, Any] = Depends(get_token_claims),
    repo: SQLiteUserRepository = Depends(get_user_repo),
) -> User:
    user = repo.get_by_id(int(claims["sub"]))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@dataclass
class AuthContext:
    user: User
    organization_id: int


def get_auth_context(
    claims: Dict[str, Any] = Depends(get_token_claims),
    user: User = Depends(get_current_user),
) -> AuthContext:
    """Active organization: the token's ``org`` claim, else the user's own."""
    org = claims.get("org", user.organization_id)
    if org is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No active organization")
    # a token minted before the user moved organizations is stale
    if user.organization_id is not None and int(org) != user.organization_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return AuthContext(user=user, organization_id=int(org))


def authorize(*roles: str):
    """Dependency factory: the caller must hold one of ``roles``."""
    allowed = {r.value if isinstance(r, Role) else r for r in roles}

    def dependency(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if ctx.user.role not in allowed:
            logger.warning("User %s with role %s denied (needs one of %s)", ctx.user.id, ctx.user.role, sorted(allowed))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Insufficient permissions")
        return ctx

    return dependency


def get_portal_client(
    user: User = Depends(get_current_user),
    clients: SQLiteClientRepository = Depends(get_client_repo),
) -> Client:
    if user.role != Role.CLIENT.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Insufficient permissions")
    client = clients.get_by_user_id(user.id)
    if client is None:
        # profile rows are created at signup; older accounts get one on first use
        client = clients.create_client(Client(
            id=None, organization_id=user.organization_id, name=user.name or user.email,
            email=user.email, user_id=user.id,
        ))
        logger.info("Created missing client profile for user %s", user.id)
    return client


def verify_webhook_secret(x_webhook_secret: Optional[str] = Header(None)) -> None:
    if not x_webhook_secret or not secrets.compare_digest(x_webhook_secret, settings.WEBHOOK_SECRET):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized: Invalid Secret")


def request_meta(request: Request) -> Dict[str, Optional[str]]:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


def http_error(e: Exception, message: str) -> HTTPException:
    """Domain error -> HTTP status; anything unexpected is logged and hidden behind ``message``."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e.args[0]) if e.args else "Not found")
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (BusinessRuleError, ValueError)):
        return HTTPException(status_code=400, detail=str(e))
    logger.exception(message)
    return HTTPException(status_code=500, detail=message)
