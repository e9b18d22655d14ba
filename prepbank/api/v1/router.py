"""Version 1 API routes."""

from fastapi import APIRouter

from prepbank.api.v1.endpoints import admin_import, admin_syllabus, health

api_router = APIRouter()

for module in (health, admin_import, admin_syllabus):
    api_router.include_router(module.router)
