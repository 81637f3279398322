import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gradebook.core.database import Base, get_db
from gradebook.core.security import hash_password
from gradebook.main import app
from gradebook.models import (
    AcademicAssessment,
    AcademicClass,
    AttendanceEntry,
    AttendanceSession,
    AttendanceStatus,
    ClassSection,
    School,
    SchoolMembership,
    SchoolRole,
    Student,
    StudentEnrollment,
    StudentGuardian,
    StudentMark,
    Subject,
    User,
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def add_user(db: Session, school: School, username: str, role: SchoolRole | None, student_id: int | None = None) -> User:
    user = User(name=username.title(), username=username, password_hash=hash_password("secret123"))
    db.add(user)
    db.flush()
    if role is not None:
        db.add(SchoolMembership(school_id=school.id, user_id=user.id, role=role, student_id=student_id))
        db.flush()
    return user


class Gradebook:
    """Handles to the rows of the seeded school."""

    def __init__(self, **rows):
        self.__dict__.update(rows)


@pytest.fixture
def gradebook(db) -> Gradebook:
    """Greenwood, Grade 5 - B: Alice, Bob and Cara with Math and Science.

    Math: Unit Test 1 (/50) and Midterm (/100), term "Term 1".
    Science: Lab (/20), term "Term 1", and Final (/100), term "Term 2".
    Draft: an unpublished Math quiz that must never count.
    """
    school = School(name="Greenwood High", slug="greenwood")
    db.add(school)
    db.flush()

    grade5 = AcademicClass(school_id=school.id, name="Grade 5", grade_level=5)
    db.add(grade5)
    db.flush()
    section = ClassSection(school_id=school.id, class_id=grade5.id, name="B")
    other_section = ClassSection(school_id=school.id, class_id=grade5.id, name="C")
    db.add_all([section, other_section])
    db.flush()

    math = Subject(school_id=school.id, name="Mathematics", code="MATH")
    science = Subject(school_id=school.id, name="Science", code="SCI")
    db.add_all([math, science])
    db.flush()

    alice = Student(school_id=school.id, first_name="Alice", last_name="Adams", parent_name="Ann Adams")
    bob = Student(school_id=school.id, first_name="Bob", last_name="Brown")
    cara = Student(school_id=school.id, first_name="Cara", last_name="Clark")
    dan = Student(school_id=school.id, first_name="Dan", last_name="Dunn")
    db.add_all([alice, bob, cara, dan])
    db.flush()

    db.add_all([
        StudentEnrollment(school_id=school.id, student_id=s.id, class_section_id=section.id, start_date=date(2026, 4, 1))
        for s in (alice, bob, cara)
    ])
    # Dan left the section and now has no open enrollment
    db.add(StudentEnrollment(
        school_id=school.id, student_id=dan.id, class_section_id=section.id,
        start_date=date(2025, 4, 1), end_date=date(2026, 3, 31),
    ))

    unit_test = AcademicAssessment(
        school_id=school.id, class_section_id=section.id, subject_id=math.id,
        title="Unit Test 1", max_marks=Decimal("50"), term_label="Term 1", is_published=True,
    )
    midterm = AcademicAssessment(
        school_id=school.id, class_section_id=section.id, subject_id=math.id,
        title="Midterm", max_marks=Decimal("100"), term_label="Term 1", is_published=True,
    )
    lab = AcademicAssessment(
        school_id=school.id, class_section_id=section.id, subject_id=science.id,
        title="Lab", max_marks=Decimal("20"), term_label="Term 1", is_published=True,
    )
    final = AcademicAssessment(
        school_id=school.id, class_section_id=section.id, subject_id=science.id,
        title="Final", max_marks=Decimal("100"), term_label="Term 2", is_published=True,
    )
    draft = AcademicAssessment(
        school_id=school.id, class_section_id=section.id, subject_id=math.id,
        title="Pop Quiz", max_marks=Decimal("10"), term_label="Term 1", is_published=False,
    )
    db.add_all([unit_test, midterm, lab, final, draft])
    db.flush()

    # Totals out of 270: Alice 225, Bob 148, Cara 216 (Bob's Final ungraded)
    scores = {
        alice.id: {unit_test.id: "45", midterm.id: "85", lab.id: "15", final.id: "80"},
        bob.id: {unit_test.id: "40", midterm.id: "90", lab.id: "18", final.id: None},
        cara.id: {unit_test.id: "48", midterm.id: "70", lab.id: "18", final.id: "80"},
    }
    for student_id, by_assessment in scores.items():
        for assessment_id, value in by_assessment.items():
            db.add(StudentMark(
                school_id=school.id, student_id=student_id, assessment_id=assessment_id,
                marks=Decimal(value) if value is not None else None,
            ))
    db.add(StudentMark(school_id=school.id, student_id=alice.id, assessment_id=draft.id, marks=Decimal("2")))

    sessions = [
        AttendanceSession(school_id=school.id, class_section_id=section.id, session_date=date(2026, 5, day))
        for day in (4, 5, 6, 7)
    ]
    db.add_all(sessions)
    db.flush()
    alice_days = [AttendanceStatus.PRESENT, AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.ABSENT]
    for session, status in zip(sessions, alice_days):
        db.add(AttendanceEntry(school_id=school.id, session_id=session.id, student_id=alice.id, status=status))
    db.add(AttendanceEntry(school_id=school.id, session_id=sessions[0].id, student_id=bob.id, status=AttendanceStatus.EXCUSED))

    teacher = add_user(db, school, "teacher", SchoolRole.TEACHER)
    principal = add_user(db, school, "principal", SchoolRole.PRINCIPAL)
    alice_user = add_user(db, school, "alice", SchoolRole.STUDENT, student_id=alice.id)
    parent = add_user(db, school, "parent", SchoolRole.PARENT)
    db.add(StudentGuardian(school_id=school.id, student_id=cara.id, user_id=parent.id, relationship_label="mother"))
    accountant = add_user(db, school, "accountant", SchoolRole.ACCOUNTANT)
    outsider = add_user(db, school, "outsider", None)

    db.commit()

    return Gradebook(
        school=school,
        section=section,
        other_section=other_section,
        math=math,
        science=science,
        alice=alice,
        bob=bob,
        cara=cara,
        dan=dan,
        unit_test=unit_test,
        midterm=midterm,
        lab=lab,
        final=final,
        draft=draft,
        teacher=teacher,
        principal=principal,
        alice_user=alice_user,
        parent=parent,
        accountant=accountant,
        outsider=outsider,
    )
