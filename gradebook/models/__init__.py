"""Database models package."""

from gradebook.models.academic import AcademicClass, ClassSection, Subject
from gradebook.models.assessment import AcademicAssessment, GradeThreshold, StudentMark
from gradebook.models.attendance import AttendanceEntry, AttendanceSession, AttendanceStatus
from gradebook.models.school import School, SchoolStatus
from gradebook.models.student import Student, StudentEnrollment, StudentGuardian
from gradebook.models.user import (
    ACADEMIC_STAFF_ROLES,
    FAMILY_ROLES,
    GRADING_ADMIN_ROLES,
    SchoolMembership,
    SchoolRole,
    User,
)

__all__ = [
    # School
    "School",
    "SchoolStatus",
    # Users
    "User",
    "SchoolMembership",
    "SchoolRole",
    "GRADING_ADMIN_ROLES",
    "ACADEMIC_STAFF_ROLES",
    "FAMILY_ROLES",
    # Academic structure
    "AcademicClass",
    "ClassSection",
    "Subject",
    # Students
    "Student",
    "StudentGuardian",
    "StudentEnrollment",
    # Assessments
    "AcademicAssessment",
    "StudentMark",
    "GradeThreshold",
    # Attendance
    "AttendanceSession",
    "AttendanceEntry",
    "AttendanceStatus",
]
