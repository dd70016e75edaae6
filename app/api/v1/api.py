# app/api/v1/api.py
from fastapi import APIRouter

from app.api.v1.endpoints import admin

api_router_v1 = APIRouter(prefix="/api/v1")

api_router_v1.include_router(admin.router, prefix="/admin")
