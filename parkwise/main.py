import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parkwise.config import settings
from parkwise.db import init_db
from parkwise.exception_handler import setup_exception_handlers
from routers import admin, bookings, owner_lots, parking_lots

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(title="Parkwise Parking API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

app.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
app.include_router(bookings.user_router, prefix="/user", tags=["bookings"])
app.include_router(parking_lots.router, prefix="/parking-lots", tags=["parking-lots"])
app.include_router(owner_lots.router, prefix="/owner/lots", tags=["owner"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(admin.health_router, tags=["health"])


@app.on_event("startup")
def on_startup():
    if os.getenv("SKIP_DB_INIT") == "1":
        return
    init_db()


@app.get("/")
def root():
    return {"ok": True, "service": "parkwise-api"}
