"""FastAPI application for Escala, the hospital shift schedule and billing app."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import engine, Base
from routers import (
    assignments, claims, doctors, export, history, months, notifications, reports,
    rules, settings as company_settings, structure, sync, template, timesheets, users,
)

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.app_name,
    description="Hospital shift schedules, doctor payments and timesheets",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,  # Must be False when allow_origins is "*"
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.include_router(structure.router, prefix="/api/structure", tags=["structure"])
app.include_router(doctors.router, prefix="/api/doctors", tags=["doctors"])
app.include_router(rules.router, prefix="/api/rules", tags=["rules"])
app.include_router(months.router, prefix="/api/months", tags=["months"])
app.include_router(template.router, prefix="/api/template", tags=["template"])
app.include_router(assignments.router, prefix="/api/assignments", tags=["assignments"])
app.include_router(history.router, prefix="/api/history", tags=["history"])
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
app.include_router(export.router, prefix="/api/export", tags=["export"])
app.include_router(timesheets.router, prefix="/api/timesheets", tags=["timesheets"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(company_settings.router, prefix="/api/settings", tags=["settings"])
app.include_router(claims.router, prefix="/api/claims", tags=["claims"])
app.include_router(sync.router, prefix="/api/sync", tags=["sync"])


@app.get("/")
def root():
    return {"message": f"{settings.app_name} API", "docs": "/docs"}
