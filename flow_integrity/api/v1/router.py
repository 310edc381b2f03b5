"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from flow_integrity.api.v1 import integrity, transitions

api_router = APIRouter()

# Transition validation, video join-check, consistency audit
api_router.include_router(transitions.router, tags=["Transitions"])

# Enforcement administration
api_router.include_router(integrity.router, prefix="/integrity", tags=["Integrity"])
