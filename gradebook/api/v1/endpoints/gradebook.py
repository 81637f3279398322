"""Grade threshold, assessment and marks endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from gradebook.core.database import DbSession
from gradebook.core.dependencies import CurrentSchool, SchoolContext, require_roles
from gradebook.models.user import ACADEMIC_STAFF_ROLES, GRADING_ADMIN_ROLES
from gradebook.schemas.gradebook import (
    AssessmentCreate,
    AssessmentFilter,
    AssessmentPublish,
    AssessmentResponse,
    BulkMarksResponse,
    BulkMarksUpdate,
    GradeThresholdReplace,
    GradeThresholdResponse,
)
from gradebook.services.gradebook import GradebookService

router = APIRouter()


# ==========================================
# Grade Thresholds
# ==========================================

@router.get("/grade-thresholds", response_model=list[GradeThresholdResponse])
def list_grade_thresholds(
    context: CurrentSchool,
    db: DbSession,
):
    """
    List the school's grade bands. An empty list means the default
    A+/A/B/C/D/F scale applies.
    """
    service = GradebookService(db)
    return service.list_thresholds(context.school_id)


@router.put("/grade-thresholds", response_model=list[GradeThresholdResponse])
def replace_grade_thresholds(
    request: GradeThresholdReplace,
    context: Annotated[SchoolContext, Depends(require_roles(*GRADING_ADMIN_ROLES, mutation=True))],
    db: DbSession,
):
    """
    Replace all grade bands of the school.
    Requires a grading admin role (owner, principal, school admin).
    """
    service = GradebookService(db)
    return service.replace_thresholds(context.school_id, request)


# ==========================================
# Assessments
# ==========================================

@router.get("/assessments", response_model=list[AssessmentResponse])
def list_assessments(
    context: Annotated[SchoolContext, Depends(require_roles(*ACADEMIC_STAFF_ROLES))],
    db: DbSession,
    section_id: int | None = None,
    term: str | None = None,
    published: bool | None = None,
):
    """
    List assessments with optional section, term and published filters.
    Requires an academic staff role.
    """
    service = GradebookService(db)
    filters = AssessmentFilter(
        class_section_id=section_id,
        term_label=term,
        is_published=published,
    )
    return service.list_assessments(context.school_id, filters)


@router.post("/assessments", response_model=AssessmentResponse, status_code=201)
def create_assessment(
    request: AssessmentCreate,
    context: Annotated[SchoolContext, Depends(require_roles(*ACADEMIC_STAFF_ROLES, mutation=True))],
    db: DbSession,
):
    """
    Create a draft assessment for a section.
    Requires an academic staff role.
    """
    service = GradebookService(db)
    return service.create_assessment(context.school_id, request, created_by=context.user_id)


@router.post("/assessments/{assessment_id}/publish", response_model=AssessmentResponse)
def publish_assessment(
    assessment_id: int,
    request: AssessmentPublish,
    context: Annotated[SchoolContext, Depends(require_roles(*ACADEMIC_STAFF_ROLES, mutation=True))],
    db: DbSession,
):
    """
    Publish (or unpublish) an assessment. Only published assessments
    count toward report cards.
    """
    service = GradebookService(db)
    return service.set_published(context.school_id, assessment_id, request)


@router.put("/assessments/{assessment_id}/marks", response_model=BulkMarksResponse)
def upsert_assessment_marks(
    assessment_id: int,
    request: BulkMarksUpdate,
    context: Annotated[SchoolContext, Depends(require_roles(*ACADEMIC_STAFF_ROLES, mutation=True))],
    db: DbSession,
):
    """
    Create or update marks for an assessment in bulk.
    Validates every row first; nothing is saved if any row fails.
    """
    service = GradebookService(db)
    return service.upsert_marks(context.school_id, assessment_id, request, created_by=context.user_id)
