from fastapi import APIRouter

from recurring_orders.api.recurring import router as recurring_router

api_router = APIRouter()

# API routes at /api/*
api_router.include_router(recurring_router, prefix="/api", tags=["recurring"])
