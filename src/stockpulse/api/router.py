"""Top-level API router: mounts all domain routers under /api/v1."""

from fastapi import APIRouter

from stockpulse.api.routes import analysis, cron, news, stocks, system

api_router = APIRouter()
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
api_router.include_router(news.router, prefix="/news", tags=["news"])
api_router.include_router(stocks.router, prefix="/stocks", tags=["stocks"])
api_router.include_router(analysis.router, prefix="/analysis", tags=["analysis"])
api_router.include_router(system.router, prefix="/system", tags=["system"])
