from decimal import Decimal
from typing import Annotated, Optional, List, Dict, Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer

# exact in the domain, a JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class EntityModel(BaseModel):
    """Response built straight from a domain dataclass."""
    model_config = ConfigDict(from_attributes=True)


# --- auth / users ---

class UserResponse(EntityModel):
    id: int
    email: str
    username: Optional[str] = None
    name: Optional[str] = None
    role: str
    organization_id: Optional[int] = None
    created_at: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UserCreateRequest(BaseModel):
    email: EmailStr
    password: str
    role: str = "user"
    username: Optional[str] = None
    name: Optional[str] = None


class UserUpdateRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None


class UsernameCheckResponse(BaseModel):
    available: bool
    error: Optional[str] = None


class SuggestUsernameRequest(BaseModel):
    name: str


class SuggestUsernameResponse(BaseModel):
    suggestions: List[str]


# --- organizations / audit ---

class OrganizationRequest(BaseModel):
    name: str
    slug: Optional[str] = None


class OrganizationUpdateRequest(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None


class OrganizationResponse(EntityModel):
    id: int
    name: str
    slug: str
    created_at: str


class AuditLogResponse(EntityModel):
    id: int
    action: str
    entity: str
    entity_id: Optional[str] = None
    organization_id: Optional[int] = None
    user_id: Optional[int] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: str


# --- finance ---

class BankAccountRequest(BaseModel):
    name: str
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    initial_balance: Optional[Decimal] = None
    currency: str = "BRL"
    is_default: bool = False


class BankAccountUpdateRequest(BaseModel):
    name: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    initial_balance: Optional[Decimal] = None
    currency: Optional[str] = None
    is_default: Optional[bool] = None
    active: Optional[bool] = None


class BankAccountResponse(EntityModel):
    id: int
    name: str
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    initial_balance: Money
    current_balance: Money
    currency: str
    is_default: bool
    active: bool


class CostCenterRequest(BaseModel):
    name: str
    description: Optional[str] = None
    active: bool = True


class CostCenterUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    active: Optional[bool] = None


class CostCenterResponse(EntityModel):
    id: int
    name: str
    description: Optional[str] = None
    active: bool


class CategoryRequest(BaseModel):
    name: str
    type: Literal["INCOME", "EXPENSE"]
    cost_center_id: Optional[int] = None
    active: bool = True


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[Literal["INCOME", "EXPENSE"]] = None
    cost_center_id: Optional[int] = None
    active: Optional[bool] = None


class CategoryResponse(EntityModel):
    id: int
    name: str
    type: str
    cost_center_id: Optional[int] = None
    active: bool


class TripSummaryResponse(EntityModel):
    trip_id: int
    income: Money
    expense: Money
    net: Money
    pending_income: Money
    reservations: int
    cancelled_reservations: int
    reservation_revenue: Money


# --- trips ---

class TripRequest(BaseModel):
    origin_city: str
    destination_city: str
    departure_date: str
    title: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_date: Optional[str] = None
    arrival_time: Optional[str] = None
    stops: List[Dict[str, Any]] = Field(default_factory=list)
    return_stops: List[Dict[str, Any]] = Field(default_factory=list)
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    price_conventional: Optional[Decimal] = None
    price_executive: Optional[Decimal] = None
    price_semi_sleeper: Optional[Decimal] = None
    price_sleeper: Optional[Decimal] = None
    price_bed: Optional[Decimal] = None
    price_master_bed: Optional[Decimal] = None
    seats_available: Optional[int] = None
    status: Optional[str] = None
    active: bool = True
    notes: Optional[str] = None


class TripUpdateRequest(BaseModel):
    origin_city: Optional[str] = None
    destination_city: Optional[str] = None
    departure_date: Optional[str] = None
    title: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_date: Optional[str] = None
    arrival_time: Optional[str] = None
    stops: Optional[List[Dict[str, Any]]] = None
    return_stops: Optional[List[Dict[str, Any]]] = None
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    price_conventional: Optional[Decimal] = None
    price_executive: Optional[Decimal] = None
    price_semi_sleeper: Optional[Decimal] = None
    price_sleeper: Optional[Decimal] = None
    price_bed: Optional[Decimal] = None
    price_master_bed: Optional[Decimal] = None
    seats_available: Optional[int] = None
    status: Optional[str] = None
    active: Optional[bool] = None
    notes: Optional[str] = None


class PublicTripResponse(EntityModel):
    id: int
    trip_code: str
    title: Optional[str] = None
    origin_city: str
    destination_city: str
    stops: List[Dict[str, Any]]
    return_stops: List[Dict[str, Any]]
    departure_date: str
    departure_time: Optional[str] = None
    arrival_date: Optional[str] = None
    arrival_time: Optional[str] = None
    price_conventional: Optional[Money] = None
    price_executive: Optional[Money] = None
    price_semi_sleeper: Optional[Money] = None
    price_sleeper: Optional[Money] = None
    price_bed: Optional[Money] = None
    price_master_bed: Optional[Money] = None
    seats_available: int
    status: str


class TripResponse(PublicTripResponse):
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    active: bool
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SeatPriceResponse(BaseModel):
    trip_id: int
    seat_type: str
    price: float


# --- reservations ---

class ReservationRequest(BaseModel):
    trip_id: int
    passenger_name: str
    seat_number: Optional[str] = None
    seat_type: Optional[str] = None
    passenger_document: Optional[str] = None
    passenger_email: Optional[str] = None
    passenger_phone: Optional[str] = None
    boarding_point: Optional[str] = None
    dropoff_point: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Decimal] = None
    client_id: Optional[int] = None
    amount_paid: Optional[Decimal] = None
    payment_method: Optional[str] = None
    credits_used: Optional[Decimal] = None
    notes: Optional[str] = None


class ReservationUpdateRequest(BaseModel):
    passenger_name: Optional[str] = None
    seat_number: Optional[str] = None
    seat_type: Optional[str] = None
    passenger_document: Optional[str] = None
    passenger_email: Optional[str] = None
    passenger_phone: Optional[str] = None
    boarding_point: Optional[str] = None
    dropoff_point: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Decimal] = None
    client_id: Optional[int] = None
    amount_paid: Optional[Decimal] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class ReservationResponse(EntityModel):
    id: int
    trip_id: int
    ticket_code: str
    seat_number: Optional[str] = None
    seat_type: Optional[str] = None
    passenger_name: str
    passenger_document: Optional[str] = None
    passenger_email: Optional[str] = None
    passenger_phone: Optional[str] = None
    boarding_point: Optional[str] = None
    dropoff_point: Optional[str] = None
    status: str
    price: Money
    client_id: Optional[int] = None
    amount_paid: Money
    payment_method: Optional[str] = None
    external_payment_id: Optional[str] = None
    order_code: Optional[str] = None
    credits_used: Money
    is_partial: bool
    notes: Optional[str] = None
    created_at: Optional[str] = None


# --- fleet ---

class VehicleRequest(BaseModel):
    plate: str
    model: str
    type: Optional[str] = None
    status: Optional[str] = None
    passenger_capacity: int = 0
    current_km: int = 0
    year: Optional[int] = None
    notes: Optional[str] = None


class VehicleUpdateRequest(BaseModel):
    plate: Optional[str] = None
    model: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    passenger_capacity: Optional[int] = None
    current_km: Optional[int] = None
    year: Optional[int] = None
    notes: Optional[str] = None


class VehicleResponse(EntityModel):
    id: int
    plate: str
    model: str
    type: str
    status: str
    passenger_capacity: int
    current_km: int
    year: Optional[int] = None
    notes: Optional[str] = None


class DriverRequest(BaseModel):
    name: str
    status: Optional[str] = None
    document: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None
    license_category: Optional[str] = None
    license_expiry: Optional[str] = None
    notes: Optional[str] = None


class DriverUpdateRequest(BaseModel):
    name: Optional[str] = None
    status: Optional[str] = None
    document: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None
    license_category: Optional[str] = None
    license_expiry: Optional[str] = None
    notes: Optional[str] = None


class DriverResponse(EntityModel):
    id: int
    name: str
    status: str
    document: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None
    license_category: Optional[str] = None
    license_expiry: Optional[str] = None
    notes: Optional[str] = None


class MaintenanceRequest(BaseModel):
    vehicle_id: int
    scheduled_date: str
    type: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    km: int = 0
    cost_parts: Optional[Decimal] = None
    cost_labor: Optional[Decimal] = None
    currency: str = "BRL"
    workshop: Optional[str] = None
    notes: Optional[str] = None


class MaintenanceUpdateRequest(BaseModel):
    vehicle_id: Optional[int] = None
    scheduled_date: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    km: Optional[int] = None
    cost_parts: Optional[Decimal] = None
    cost_labor: Optional[Decimal] = None
    currency: Optional[str] = None
    workshop: Optional[str] = None
    notes: Optional[str] = None


class MaintenanceResponse(EntityModel):
    id: int
    vehicle_id: int
    type: str
    status: str
    scheduled_date: str
    description: Optional[str] = None
    km: int
    cost_parts: Money
    cost_labor: Money
    total_cost: Money
    currency: str
    workshop: Optional[str] = None
    notes: Optional[str] = None


# --- parcels / charters ---

class ParcelRequest(BaseModel):
    sender_name: str
    recipient_name: str
    origin_city: str
    destination_city: str
    sender_document: Optional[str] = None
    sender_phone: Optional[str] = None
    recipient_document: Optional[str] = None
    recipient_phone: Optional[str] = None
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[Decimal] = None
    dimensions: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Decimal] = None
    trip_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None


class ParcelUpdateRequest(BaseModel):
    sender_name: Optional[str] = None
    sender_document: Optional[str] = None
    sender_phone: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_document: Optional[str] = None
    recipient_phone: Optional[str] = None
    origin_city: Optional[str] = None
    origin_state: Optional[str] = None
    destination_city: Optional[str] = None
    destination_state: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[Decimal] = None
    dimensions: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Decimal] = None
    trip_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None


class ParcelResponse(EntityModel):
    id: int
    tracking_code: str
    sender_name: str
    sender_document: Optional[str] = None
    sender_phone: Optional[str] = None
    recipient_name: str
    recipient_document: Optional[str] = None
    recipient_phone: Optional[str] = None
    origin_city: str
    origin_state: Optional[str] = None
    destination_city: str
    destination_state: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[Money] = None
    dimensions: Optional[str] = None
    status: str
    price: Money
    trip_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ParcelTrackingResponse(EntityModel):
    tracking_code: str
    status: str
    origin_city: str
    destination_city: str
    recipient_name: str
    updated_at: Optional[str] = None


class PublicParcelRequest(BaseModel):
    organization_id: int
    sender_name: str
    recipient_name: str
    origin_city: str
    destination_city: str
    sender_document: Optional[str] = None
    sender_phone: Optional[str] = None
    recipient_document: Optional[str] = None
    recipient_phone: Optional[str] = None
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[Decimal] = None
    dimensions: Optional[str] = None


class CharterRequest(BaseModel):
    contact_name: str
    origin_city: str
    destination_city: str
    departure_date: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    company_name: Optional[str] = None
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None
    departure_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None
    passenger_count: int = 1
    vehicle_type_requested: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    quote_price: Optional[Decimal] = None
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None


class CharterUpdateRequest(BaseModel):
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    company_name: Optional[str] = None
    origin_city: Optional[str] = None
    origin_state: Optional[str] = None
    destination_city: Optional[str] = None
    destination_state: Optional[str] = None
    departure_date: Optional[str] = None
    departure_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None
    passenger_count: Optional[int] = None
    vehicle_type_requested: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    quote_price: Optional[Decimal] = None
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None


class CharterResponse(EntityModel):
    id: int
    contact_name: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    company_name: Optional[str] = None
    origin_city: str
    origin_state: Optional[str] = None
    destination_city: str
    destination_state: Optional[str] = None
    departure_date: str
    departure_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None
    passenger_count: int
    vehicle_type_requested: Optional[str] = None
    description: Optional[str] = None
    status: str
    quote_price: Optional[Money] = None
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    client_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class PublicCharterRequest(BaseModel):
    organization_id: int
    contact_name: str
    origin_city: str
    destination_city: str
    departure_date: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    company_name: Optional[str] = None
    origin_state: Optional[str] = None
    destination_state: Optional[str] = None
    departure_time: Optional[str] = None
    return_date: Optional[str] = None
    return_time: Optional[str] = None
    passenger_count: int = 1
    vehicle_type_requested: Optional[str] = None
    description: Optional[str] = None


# --- clients ---

class ClientRequest(BaseModel):
    name: str
    client_type: Literal["PESSOA_FISICA", "PESSOA_JURIDICA"] = "PESSOA_FISICA"
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    document_type: Optional[str] = "CPF"
    document: Optional[str] = None
    corporate_name: Optional[str] = None
    trade_name: Optional[str] = None
    cnpj: Optional[str] = None
    credits: Optional[Decimal] = None


class ClientUpdateRequest(BaseModel):
    name: Optional[str] = None
    client_type: Optional[Literal["PESSOA_FISICA", "PESSOA_JURIDICA"]] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    document_type: Optional[str] = None
    document: Optional[str] = None
    corporate_name: Optional[str] = None
    trade_name: Optional[str] = None
    cnpj: Optional[str] = None
    credits: Optional[Decimal] = None


class ClientResponse(EntityModel):
    id: int
    name: str
    client_type: str
    email: Optional[str] = None
    phone: Optional[str] = None
    document_type: Optional[str] = None
    document: Optional[str] = None
    corporate_name: Optional[str] = None
    trade_name: Optional[str] = None
    cnpj: Optional[str] = None
    credits: Money
    user_id: Optional[int] = None
    created_at: Optional[str] = None


class ClientNoteRequest(BaseModel):
    content: str = Field(..., min_length=1)


class ClientNoteResponse(EntityModel):
    id: int
    client_id: int
    content: str
    created_by: Optional[int] = None
    created_at: str


# --- public portal ---

class SignupRequest(BaseModel):
    name: str
    username: str
    email: EmailStr
    password: str
    phone: Optional[str] = None
    client_type: Literal["PESSOA_FISICA", "PESSOA_JURIDICA"] = "PESSOA_FISICA"
    document_type: Optional[str] = "CPF"
    document: Optional[str] = None
    corporate_name: Optional[str] = None
    trade_name: Optional[str] = None
    cnpj: Optional[str] = None
    organization_id: Optional[int] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None


class DashboardResponse(BaseModel):
    profile: ClientResponse
    reservations: List[ReservationResponse]
    parcels: List[ParcelResponse] = []


class CheckoutPassengerRequest(BaseModel):
    seat_number: str
    passenger_name: str
    seat_type: Optional[str] = None
    passenger_document: Optional[str] = None
    passenger_email: Optional[str] = None
    passenger_phone: Optional[str] = None
    boarding_point: Optional[str] = None
    dropoff_point: Optional[str] = None


class CheckoutRequest(BaseModel):
    trip_id: int
    reservations: List[CheckoutPassengerRequest]
    credits_used: Optional[Decimal] = None
    is_partial: bool = False
    payment_type: Literal["PIX", "LINK"] = "PIX"
    # informative only, the server computes its own figure
    entry_value: Optional[Decimal] = None


class PaymentResponse(BaseModel):
    success: bool
    payment_id: Optional[str] = None
    qr_code: Optional[str] = None
    copy_paste_code: Optional[str] = None
    payment_link: Optional[str] = None
    message: Optional[str] = None


class CheckoutResponse(BaseModel):
    success: bool = True
    reservations: List[ReservationResponse]
    total: float
    credits_applied: float
    entry_value: float
    remaining: float
    is_partial: bool
    payment: Optional[PaymentResponse] = None


# --- webhooks ---

class PaymentConfirmedRequest(BaseModel):
    reservation_id: Optional[int] = None
    transaction_id: Optional[str] = None
    amount: Optional[Decimal] = None
    payment_method: Optional[str] = None
    payment_date: Optional[str] = None


class CancelReservationRequest(BaseModel):
    reservation_id: Optional[int] = None
    reason: Optional[str] = None


class PendingReservationResponse(BaseModel):
    id: int
    ticket_code: str
    created_at: Optional[str] = None
    passenger_name: str
    passenger_email: Optional[str] = None
