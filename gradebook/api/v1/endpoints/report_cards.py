"""Report card endpoints."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from gradebook.core.database import DbSession
from gradebook.core.dependencies import CurrentSchool, SchoolContext, can_view_student, require_roles
from gradebook.core.exceptions import PermissionDeniedError
from gradebook.models.user import ACADEMIC_STAFF_ROLES
from gradebook.schemas.common import ErrorResponse
from gradebook.schemas.report_card import ReportCardBatchResponse, StudentReportCardResponse
from gradebook.services.assessment_discovery import discovery_for_roles
from gradebook.services.ranking import RankingStrategy
from gradebook.services.report_card import ReportCardService

router = APIRouter(
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse, "description": "Nothing to report on (no enrollment, assessments or marks)"},
    },
)


@router.get("/sections/{section_id}", response_model=ReportCardBatchResponse)
def generate_section_report_cards(
    section_id: int,
    context: Annotated[SchoolContext, Depends(require_roles(*ACADEMIC_STAFF_ROLES))],
    db: DbSession,
    term: str | None = Query(None, max_length=100, description="Only assessments with this term label"),
    ranking: RankingStrategy | None = Query(None, description="Override the configured tie policy"),
):
    """
    Generate report cards for every active student of a section.
    Cards are ranked across the section and returned alphabetically.
    Requires an academic staff role.
    """
    service = ReportCardService(db, ranking=ranking)
    return service.generate_section_report_cards(context.school, section_id, term_label=term)


@router.get("/sections/{section_id}/export")
def export_section_report_cards(
    section_id: int,
    context: Annotated[SchoolContext, Depends(require_roles(*ACADEMIC_STAFF_ROLES))],
    db: DbSession,
    term: str | None = Query(None, max_length=100),
    ranking: RankingStrategy | None = None,
):
    """
    Download a section's report cards as an Excel result sheet.
    Requires an academic staff role.
    """
    service = ReportCardService(db, ranking=ranking)
    content = service.export_section_workbook(context.school, section_id, term_label=term)

    filename = f"report_cards_{context.school.slug}_{section_id}"
    if term:
        filename += f"_{term.replace(' ', '_')}"
    filename += ".xlsx"

    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/students/{student_id}", response_model=StudentReportCardResponse)
def get_student_report_card(
    student_id: int,
    context: CurrentSchool,
    db: DbSession,
    term: str | None = Query(None, max_length=100),
    ranking: RankingStrategy | None = None,
):
    """
    Generate one student's report card, ranked within their section.
    Staff may request any student; students only themselves and parents
    only their linked children.
    """
    if not can_view_student(db, context, student_id):
        raise PermissionDeniedError("You can only view report cards of your own students")

    discovery = discovery_for_roles(context.roles, context.is_super_admin())
    service = ReportCardService(db, ranking=ranking)
    return service.generate_student_report_card(
        context.school,
        student_id,
        term_label=term,
        discovery=discovery,
    )
