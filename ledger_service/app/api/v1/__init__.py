from fastapi import APIRouter

from .cards import router as cards_router
from .consumers import router as consumers_router
from .credits import router as credits_router
from .stats import router as stats_router
from .users import router as users_router

api_router = APIRouter()
api_router.include_router(cards_router, prefix="/companies/cards", tags=["cards"])
api_router.include_router(
    consumers_router, prefix="/companies/consumers", tags=["consumers"]
)
api_router.include_router(
    credits_router, prefix="/companies/credits", tags=["credits"]
)
api_router.include_router(stats_router, prefix="/companies/stats", tags=["stats"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
