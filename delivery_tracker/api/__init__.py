"""
API router initialization and setup.

Routes are mounted without a version prefix: the dashboard front-end and the
webhook senders are configured against these exact paths.
"""
from fastapi import APIRouter
from .endpoints import jobs, webhooks

api_router = APIRouter()

api_router.include_router(
    jobs.router,
    tags=["jobs"]
)

api_router.include_router(
    webhooks.router,
    prefix="/webhook",
    tags=["webhooks"]
)
