from decimal import Decimal

from gradebook.models.attendance import AttendanceStatus
from gradebook.schemas.report_card import (
    AssessmentRecord,
    AttendanceEntryRecord,
    AttendanceSummary,
    GradeThresholdRecord,
    MarkRecord,
    StudentRecord,
)
from gradebook.services.aggregation import (
    aggregate_subject,
    build_marks_lookup,
    build_report_card,
    group_assessments_by_subject,
    subject_name_for,
    tally_attendance,
)
from gradebook.services.ranking import rank_cohort


def assessment(assessment_id, max_marks, subject_id=1, title=None):
    return AssessmentRecord(
        id=assessment_id,
        class_section_id=1,
        subject_id=subject_id,
        title=title or f"Assessment {assessment_id}",
        max_marks=max_marks,
        is_published=True,
    )


STUDENT = StudentRecord(id=7, first_name="Alice", last_name="Adams", parent_name="Ann Adams")


def test_subject_totals_and_grade():
    result = aggregate_subject(
        "Mathematics",
        [assessment(1, Decimal("50")), assessment(2, Decimal("100"))],
        {1: Decimal("45"), 2: Decimal("85")},
        [],
    )

    assert result.total_obtained == Decimal("130")
    assert result.total_max == Decimal("150")
    assert round(result.percentage, 2) == Decimal("86.67")
    assert result.grade == "A"
    assert [a.title for a in result.assessments] == ["Assessment 1", "Assessment 2"]


def test_ungraded_assessment_still_counts_in_denominator():
    result = aggregate_subject(
        "Mathematics",
        [assessment(1, Decimal("50")), assessment(2, Decimal("100"))],
        {2: Decimal("80")},
        [],
    )

    assert result.total_obtained == Decimal("80")
    assert result.total_max == Decimal("150")
    assert round(result.percentage, 2) == Decimal("53.33")
    assert result.grade == "D"
    assert result.assessments[0].obtained is None
    assert result.assessments[0].max_marks == Decimal("50")


def test_missing_max_marks_counts_as_zero():
    record = AssessmentRecord(id=1, class_section_id=1, title="Oral", max_marks=None)
    assert record.max_marks == Decimal("0")

    result = aggregate_subject("English", [record], {}, [])
    assert result.total_max == Decimal("0")
    assert result.percentage == Decimal("0")
    assert result.grade == "F"


def test_subject_names_general_and_unknown():
    names = {1: "Mathematics"}
    assert subject_name_for(1, names) == "Mathematics"
    assert subject_name_for(None, names) == "General"
    assert subject_name_for(99, names) == "Unknown"


def test_grouping_keeps_discovery_order_within_subject():
    groups = group_assessments_by_subject(
        [
            assessment(3, Decimal("10"), subject_id=2),
            assessment(1, Decimal("10"), subject_id=1),
            assessment(2, Decimal("10"), subject_id=2),
            assessment(4, Decimal("10"), subject_id=None),
        ],
        {1: "Mathematics", 2: "Science"},
    )

    assert set(groups) == {"Mathematics", "Science", "General"}
    assert [a.id for a in groups["Science"]] == [3, 2]


def test_marks_lookup_skips_ungraded_rows():
    lookup = build_marks_lookup([
        MarkRecord(student_id=1, assessment_id=10, marks=Decimal("5")),
        MarkRecord(student_id=1, assessment_id=11, marks=None),
        MarkRecord(student_id=2, assessment_id=10, marks=None),
    ])

    assert lookup == {1: {10: Decimal("5")}, 2: {}}


def test_attendance_tally_counts_late_as_present():
    tallies = tally_attendance([
        AttendanceEntryRecord(student_id=1, status=AttendanceStatus.PRESENT),
        AttendanceEntryRecord(student_id=1, status=AttendanceStatus.LATE),
        AttendanceEntryRecord(student_id=1, status=AttendanceStatus.ABSENT),
        AttendanceEntryRecord(student_id=2, status=AttendanceStatus.EXCUSED),
    ])

    assert tallies[1].present == 2
    assert tallies[1].absent == 1
    assert tallies[1].total == 3
    assert tallies[2].present == 0
    assert tallies[2].total == 1


def test_report_card_rolls_up_subjects_sorted_by_name():
    science = aggregate_subject("science", [assessment(1, Decimal("20"))], {1: Decimal("15")}, [])
    maths = aggregate_subject("Mathematics", [assessment(2, Decimal("80"))], {2: Decimal("80")}, [])
    art = aggregate_subject("Art", [assessment(3, Decimal("0"))], {}, [])

    card = build_report_card(
        STUDENT,
        [science, maths, art],
        AttendanceSummary(present=3, absent=1, total=4),
        [],
        class_name="Grade 5",
        section_name="B",
        cohort_size=3,
        term_label="Term 1",
        school_name="Greenwood High",
    )

    assert [s.subject_name for s in card.subjects] == ["Art", "Mathematics", "science"]
    assert card.grand_total_obtained == Decimal("95")
    assert card.grand_total_max == Decimal("100")
    assert card.overall_percentage == Decimal("95")
    assert card.overall_grade == "A+"
    assert card.rank is None
    assert card.student_name == "Alice Adams"
    assert card.parent_name == "Ann Adams"
    assert card.attendance.rate == 75.0
    assert card.cohort_size == 3


def test_report_card_uses_configured_bands():
    bands = [
        GradeThresholdRecord(grade_label="Pass", min_percentage=Decimal("50"), max_percentage=Decimal("100")),
        GradeThresholdRecord(grade_label="Fail", min_percentage=Decimal("0"), max_percentage=Decimal("49.99")),
    ]
    subject = aggregate_subject("Mathematics", [assessment(1, Decimal("10"))], {1: Decimal("4")}, bands)

    card = build_report_card(STUDENT, [subject], None, bands)

    assert subject.grade == "Fail"
    assert card.overall_grade == "Fail"


def test_report_card_without_attendance_or_names():
    card = build_report_card(STUDENT, [], AttendanceSummary(), [])

    assert card.attendance is None
    assert card.class_name == "Class"
    assert card.section_name == "Section"
    assert card.subjects == []
    assert card.overall_percentage == Decimal("0")
    assert card.overall_grade == "F"


def test_percentages_serialize_rounded():
    subject = aggregate_subject(
        "Mathematics",
        [assessment(1, Decimal("3"))],
        {1: Decimal("1")},
        [],
    )
    card = build_report_card(STUDENT, [subject], None, [])

    data = card.model_dump(mode="json")
    assert data["overall_percentage"] == 33.33
    assert data["subjects"][0]["percentage"] == 33.33
    assert data["grand_total_obtained"] == 1.0
    assert data["attendance"] is None


def test_cohort_of_three_end_to_end():
    math = assessment(1, Decimal("100"), subject_id=1, title="Math")
    science = assessment(2, Decimal("50"), subject_id=2, title="Science")
    scores = {
        "A": {1: Decimal("90"), 2: Decimal("40")},
        "B": {1: Decimal("70"), 2: None},
        "C": {1: Decimal("60"), 2: Decimal("30")},
    }

    cards = rank_cohort([
        build_report_card(
            StudentRecord(id=sid, first_name=name),
            [
                aggregate_subject("Math", [math], scores[name], []),
                aggregate_subject("Science", [science], scores[name], []),
            ],
            None,
            [],
            cohort_size=3,
        )
        for sid, name in enumerate(("A", "B", "C"), start=1)
    ])

    summary = {c.student_name: (round(c.overall_percentage, 2), c.rank) for c in cards}
    assert summary == {
        "A": (Decimal("86.67"), 1),
        "B": (Decimal("46.67"), 3),
        "C": (Decimal("60.00"), 2),
    }

    science_b = next(c for c in cards if c.student_name == "B").subjects[1]
    assert (science_b.subject_name, science_b.total_obtained, science_b.total_max) == ("Science", Decimal("0"), Decimal("50"))
