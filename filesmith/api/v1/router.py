from fastapi import APIRouter

from filesmith.api.v1.endpoints import files, health, session, skills

v1_router = APIRouter()
v1_router.include_router(health.router, tags=["health"])
v1_router.include_router(session.router, tags=["session"])
v1_router.include_router(skills.router, tags=["skills"])
v1_router.include_router(files.router, tags=["files"])
