import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.logging_config import setup_logging
from config.settings import settings
from infrastructure.db.sqlite import init_db
from infrastructure.web.controllers.user_controller import auth_router, users_router
from infrastructure.web.controllers.admin_controller import router as admin_router
from infrastructure.web.controllers.finance_controller import router as finance_router
from infrastructure.web.controllers.trip_controller import router as trip_router
from infrastructure.web.controllers.reservation_controller import router as reservation_router
from infrastructure.web.controllers.fleet_controller import router as fleet_router
from infrastructure.web.controllers.maintenance_controller import router as maintenance_router
from infrastructure.web.controllers.express_controller import parcels_router, charters_router
from infrastructure.web.controllers.client_controller import router as client_router, portal_router
from infrastructure.web.controllers.public_controller import router as public_router
from infrastructure.web.controllers.webhook_controller import router as webhook_router

setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

app = FastAPI(title="Transport back office")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def on_startup():
    init_db(settings.DB_PATH)

@app.get("/health")
def health():
    return {"status": "ok"}

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(admin_router)
app.include_router(finance_router)
app.include_router(trip_router)
app.include_router(reservation_router)
app.include_router(fleet_router)
app.include_router(maintenance_router)
app.include_router(parcels_router)
app.include_router(charters_router)
app.include_router(client_router)
app.include_router(portal_router)
app.include_router(public_router)
app.include_router(webhook_router)


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
