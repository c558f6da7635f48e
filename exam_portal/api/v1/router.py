"""API V1 Router"""

from fastapi import APIRouter

from exam_portal.api.v1.endpoints import access_pins, admin, admin_results, auth, registrations, results

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(access_pins.router, prefix="/admin/access-pins", tags=["Access PINs (Admin)"])
api_router.include_router(admin_results.router, prefix="/admin/results", tags=["Results (Admin)"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(registrations.router, prefix="/school", tags=["School Registrations"])
api_router.include_router(results.router, prefix="/results", tags=["Results"])
