from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from core.entities.user import Role
from core.use_cases.audit_use_cases import record_event
from core.use_cases.fleet_use_cases import create_vehicle, update_vehicle, create_driver, update_driver
from infrastructure.db.fleet_repository import SQLiteFleetRepository
from infrastructure.db.sqlite import SQLiteAuditRepository
from infrastructure.web.dependencies import (
    AuthContext, authorize, get_fleet_repo, get_audit_repo, http_error, request_meta,
)
from infrastructure.web.schemas import (
    VehicleRequest, VehicleUpdateRequest, VehicleResponse,
    DriverRequest, DriverUpdateRequest, DriverResponse,
)

router = APIRouter(prefix="/api/fleet", tags=["fleet"])

fleet_roles = authorize(Role.ADMIN, Role.OPERACIONAL)


@router.get("/vehicles", response_model=List[VehicleResponse])
def list_vehicles(ctx: AuthContext = Depends(fleet_roles), fleet: SQLiteFleetRepository = Depends(get_fleet_repo)):
    return [VehicleResponse.model_validate(v) for v in fleet.list_vehicles(ctx.organization_id)]

@router.get("/vehicles/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: int, ctx: AuthContext = Depends(fleet_roles),
                fleet: SQLiteFleetRepository = Depends(get_fleet_repo)):
    vehicle = fleet.get_vehicle(ctx.organization_id, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return VehicleResponse.model_validate(vehicle)

@router.post("/vehicles", response_model=VehicleResponse, status_code=201)
def add_vehicle(
    payload: VehicleRequest,
    request: Request,
    ctx: AuthContext = Depends(fleet_roles),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        vehicle = create_vehicle(fleet, ctx.organization_id, payload.model_dump())
    except Exception as e:
        raise http_error(e, "Failed to create vehicle")
    record_event(audit, "VEHICLE_CREATE", "vehicle", vehicle.id, ctx.organization_id, ctx.user.id,
                 new_data={"plate": vehicle.plate}, **request_meta(request))
    return VehicleResponse.model_validate(vehicle)

@router.put("/vehicles/{vehicle_id}", response_model=VehicleResponse)
def edit_vehicle(
    vehicle_id: int,
    payload: VehicleUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(fleet_roles),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        vehicle = update_vehicle(fleet, ctx.organization_id, vehicle_id, changes)
    except Exception as e:
        raise http_error(e, "Failed to update vehicle")
    record_event(audit, "VEHICLE_UPDATE", "vehicle", vehicle_id, ctx.organization_id, ctx.user.id,
                 new_data=changes, **request_meta(request))
    return VehicleResponse.model_validate(vehicle)

@router.delete("/vehicles/{vehicle_id}")
def remove_vehicle(
    vehicle_id: int,
    request: Request,
    ctx: AuthContext = Depends(fleet_roles),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    if not fleet.delete_vehicle(ctx.organization_id, vehicle_id):
        raise HTTPException(status_code=404, detail="Vehicle not found")
    record_event(audit, "VEHICLE_DELETE", "vehicle", vehicle_id, ctx.organization_id, ctx.user.id,
                 **request_meta(request))
    return {"success": True}


@router.get("/drivers", response_model=List[DriverResponse])
def list_drivers(ctx: AuthContext = Depends(fleet_roles), fleet: SQLiteFleetRepository = Depends(get_fleet_repo)):
    return [DriverResponse.model_validate(d) for d in fleet.list_drivers(ctx.organization_id)]

@router.get("/drivers/{driver_id}", response_model=DriverResponse)
def get_driver(driver_id: int, ctx: AuthContext = Depends(fleet_roles),
               fleet: SQLiteFleetRepository = Depends(get_fleet_repo)):
    driver = fleet.get_driver(ctx.organization_id, driver_id)
    if driver is None:
        raise HTTPException(status_code=404, detail="Driver not found")
    return DriverResponse.model_validate(driver)

@router.post("/drivers", response_model=DriverResponse, status_code=201)
def add_driver(
    payload: DriverRequest,
    request: Request,
    ctx: AuthContext = Depends(fleet_roles),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    try:
        driver = create_driver(fleet, ctx.organization_id, payload.model_dump())
    except Exception as e:
        raise http_error(e, "Failed to create driver")
    record_event(audit, "DRIVER_CREATE", "driver", driver.id, ctx.organization_id, ctx.user.id,
                 new_data={"name": driver.name}, **request_meta(request))
    return DriverResponse.model_validate(driver)

@router.put("/drivers/{driver_id}", response_model=DriverResponse)
def edit_driver(
    driver_id: int,
    payload: DriverUpdateRequest,
    request: Request,
    ctx: AuthContext = Depends(fleet_roles),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        driver = update_driver(fleet, ctx.organization_id, driver_id, changes)
    except Exception as e:
        raise http_error(e, "Failed to update driver")
    record_event(audit, "DRIVER_UPDATE", "driver", driver_id, ctx.organization_id, ctx.user.id,
                 new_data=changes, **request_meta(request))
    return DriverResponse.model_validate(driver)

@router.delete("/drivers/{driver_id}")
def remove_driver(
    driver_id: int,
    request: Request,
    ctx: AuthContext = Depends(fleet_roles),
    fleet: SQLiteFleetRepository = Depends(get_fleet_repo),
    audit: SQLiteAuditRepository = Depends(get_audit_repo),
):
    if not fleet.delete_driver(ctx.organization_id, driver_id):
        raise HTTPException(status_code=404, detail="Driver not found")
    record_event(audit, "DRIVER_DELETE", "driver", driver_id, ctx.organization_id, ctx.user.id,
                 **request_meta(request))
    return {"success": True}
