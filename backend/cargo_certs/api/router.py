from fastapi import APIRouter

from cargo_certs.api.routes import (
    auth,
    certificates,
    contracts,
    currencies,
    health,
    pdf,
    profiles,
)

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(health.router)
api_router.include_router(profiles.router)
api_router.include_router(contracts.router)
api_router.include_router(certificates.router)
api_router.include_router(currencies.router)
api_router.include_router(pdf.router)
