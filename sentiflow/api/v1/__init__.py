# sentiflow/api/v1/__init__.py
from fastapi import APIRouter
from .endpoints import analysis_router, feedback_router

# Main router for API v1
api_v1_router = APIRouter()

api_v1_router.include_router(analysis_router.router, prefix="/analyze", tags=["Analysis"])
api_v1_router.include_router(feedback_router.router, tags=["Feedback"])
