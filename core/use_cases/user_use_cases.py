import re
import unicodedata
from typing import Optional, List, Dict, Any
from passlib.context import CryptContext
from core.entities.user import User, Role, Organization
from core.entities.client import Client
from core.errors import BusinessRuleError, ConflictError, NotFoundError
from core.repositories.user_repository import UserRepository
from core.repositories.client_repository import ClientRepository
from core.services.username import validate_username, pick_available_usernames


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_MIN_LENGTH = 8

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def register_user(
    repo: UserRepository,
    email: str,
    password: str,
    role: str = Role.USER.value,
    organization_id: Optional[int] = None,
    username: Optional[str] = None,
    name: Optional[str] = None,
) -> User:
    email = email.strip().lower()
    if repo.get_by_email(email) is not None:
        raise BusinessRuleError("Email já está cadastrado")
    if username:
        username = username.strip()
        valid, error = validate_username(username)
        if not valid:
            raise BusinessRuleError(error)
        if repo.get_by_username(username) is not None:
            raise BusinessRuleError("Username já está em uso")
    if len(password or "") < PASSWORD_MIN_LENGTH:
        raise BusinessRuleError(f"Senha deve ter no mínimo {PASSWORD_MIN_LENGTH} caracteres")
    if role not in {r.value for r in Role}:
        raise BusinessRuleError("Invalid role")
    password_hash = get_password_hash(password)
    return repo.create_user(
        email=email, password_hash=password_hash, role=role,
        organization_id=organization_id, username=username, name=name,
    )

def authenticate_user(repo: UserRepository, login: str, password: str) -> Optional[User]:
    """``login`` is an email or a username."""
    login = login.strip()
    user = repo.get_by_email(login.lower()) if "@" in login else repo.get_by_username(login)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user

def update_user(repo: UserRepository, user_id: int, organization_id: int, fields: Dict[str, Any]) -> Optional[User]:
    fields = {k: v for k, v in fields.items() if v is not None}
    if "password" in fields:
        password = fields.pop("password")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise BusinessRuleError(f"Senha deve ter no mínimo {PASSWORD_MIN_LENGTH} caracteres")
        fields["password_hash"] = get_password_hash(password)
    if "role" in fields and fields["role"] not in {r.value for r in Role}:
        raise BusinessRuleError("Invalid role")
    if "email" in fields:
        fields["email"] = fields["email"].strip().lower()
        other = repo.get_by_email(fields["email"])
        if other is not None and other.id != user_id:
            raise BusinessRuleError("Email já está cadastrado")
    if "username" in fields:
        valid, error = validate_username(fields["username"])
        if not valid:
            raise BusinessRuleError(error)
        other = repo.get_by_username(fields["username"])
        if other is not None and other.id != user_id:
            raise BusinessRuleError("Username já está em uso")
    return repo.update_user(user_id, organization_id, fields)

def check_username(repo: UserRepository, username: str) -> Dict[str, Any]:
    valid, error = validate_username(username)
    if not valid:
        return {"available": False, "error": error}
    return {"available": repo.get_by_username(username) is None}

def suggest_usernames(repo: UserRepository, name: str) -> List[str]:
    return pick_available_usernames(name, lambda candidate: repo.get_by_username(candidate) is None)

def signup_client(
    users: UserRepository,
    clients: ClientRepository,
    *,
    name: str,
    username: str,
    email: str,
    password: str,
    phone: Optional[str] = None,
    client_type: str = "PESSOA_FISICA",
    document_type: Optional[str] = "CPF",
    document: Optional[str] = None,
    corporate_name: Optional[str] = None,
    trade_name: Optional[str] = None,
    cnpj: Optional[str] = None,
    organization_id: Optional[int] = None,
) -> Client:
    """Portal signup: a ``client`` user plus the CRM profile it logs in as."""
    if not (name and username and email and password):
        raise BusinessRuleError("Nome, username, email e senha são obrigatórios")
    if client_type == "PESSOA_JURIDICA":
        if not corporate_name or not cnpj:
            raise BusinessRuleError("Razão Social e CNPJ são obrigatórios para Pessoa Jurídica")
        if len(re.sub(r"\D", "", cnpj)) != 14:
            raise BusinessRuleError("CNPJ inválido")
    if organization_id is not None and users.get_organization(organization_id) is None:
        raise BusinessRuleError("Organização inválida")

    user = register_user(
        users, email=email, password=password, role=Role.CLIENT.value,
        organization_id=organization_id, username=username, name=name,
    )
    return clients.create_client(Client(
        id=None,
        organization_id=organization_id,
        name=name,
        client_type=client_type,
        email=user.email,
        phone=phone,
        document_type=document_type,
        document=document,
        corporate_name=corporate_name,
        trade_name=trade_name,
        cnpj=cnpj,
        user_id=user.id,
    ))

def slugify(text: str) -> str:
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")

def create_organization(repo: UserRepository, name: str, slug: Optional[str] = None) -> Organization:
    name = (name or "").strip()
    if not name:
        raise BusinessRuleError("Name is required")
    slug = slugify(slug or name)
    if not slug:
        raise BusinessRuleError("Invalid slug")
    if any(o.slug == slug for o in repo.list_organizations()):
        raise ConflictError(f"Slug '{slug}' já está em uso")
    return repo.create_organization(name, slug)

def update_organization(repo: UserRepository, organization_id: int, fields: Dict[str, Any]) -> Organization:
    fields = {k: v for k, v in fields.items() if v is not None}
    if "slug" in fields:
        fields["slug"] = slugify(fields["slug"])
        if any(o.slug == fields["slug"] and o.id != organization_id for o in repo.list_organizations()):
            raise ConflictError(f"Slug '{fields['slug']}' já está em uso")
    if repo.get_organization(organization_id) is None:
        raise NotFoundError("Organization not found")
    return repo.update_organization(organization_id, fields)
