"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from gradebook.api.v1.endpoints import auth, gradebook, report_cards

api_router = APIRouter()

# Authentication (no school context required)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

# Report cards (school-scoped)
api_router.include_router(
    report_cards.router,
    prefix="/schools/{slug}/report-cards",
    tags=["Report Cards"],
)

# Grade thresholds, assessments and marks (school-scoped)
api_router.include_router(
    gradebook.router,
    prefix="/schools/{slug}",
    tags=["Gradebook"],
)
