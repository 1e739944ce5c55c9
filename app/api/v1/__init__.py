"""V1 API router aggregation."""

from fastapi import APIRouter

from app.api.v1.activity_branches import router as activity_branches_router
from app.api.v1.appointments import router as appointments_router
from app.api.v1.attendances import router as attendances_router
from app.api.v1.auth import router as auth_router
from app.api.v1.clients import router as clients_router
from app.api.v1.companies import router as companies_router
from app.api.v1.employees import router as employees_router
from app.api.v1.services import router as services_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(activity_branches_router)
v1_router.include_router(companies_router)
v1_router.include_router(services_router)
v1_router.include_router(employees_router)
v1_router.include_router(clients_router)
v1_router.include_router(appointments_router)
v1_router.include_router(attendances_router)
