from fastapi import APIRouter

from app.api.v1.health import router as health_router
from app.api.v1.auth.router import router as auth_router
from app.api.v1.users.router import router as users_router
from app.api.v1.vehicles.router import router as vehicles_router
from app.api.v1.customers.router import router as customers_router
from app.api.v1.reservations.router import router as reservations_router
from app.api.v1.spares.router import router as spares_router
from app.api.v1.maintenance.router import router as maintenance_router
from app.api.v1.notifications.router import router as notifications_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
api_router.include_router(vehicles_router, prefix="/vehicles", tags=["vehicles"])
api_router.include_router(customers_router, prefix="/customers", tags=["customers"])
api_router.include_router(reservations_router, prefix="/reservations", tags=["reservations"])
api_router.include_router(spares_router, prefix="/spare-vehicles", tags=["spare-vehicles"])
api_router.include_router(maintenance_router, prefix="/maintenance", tags=["maintenance"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
