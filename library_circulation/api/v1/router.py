"""
Router principal da API v1.
"""

from fastapi import APIRouter

from library_circulation.api.v1.auth import router as auth_router
from library_circulation.api.v1.books import router as books_router
from library_circulation.api.v1.copies import router as copies_router
from library_circulation.api.v1.loans import router as loans_router
from library_circulation.api.v1.reservations import router as reservations_router
from library_circulation.api.v1.system import router as system_router
from library_circulation.api.v1.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(books_router)
api_router.include_router(copies_router)
api_router.include_router(loans_router)
api_router.include_router(reservations_router)
api_router.include_router(system_router)
