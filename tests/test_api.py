from gradebook.core.security import create_access_token
from gradebook.models import SchoolStatus

API = "/api/v1"


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.username)}"}


def section_url(gradebook, suffix=""):
    return f"{API}/schools/greenwood/report-cards/sections/{gradebook.section.id}{suffix}"


def student_url(student):
    return f"{API}/schools/greenwood/report-cards/students/{student.id}"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ==========================================
# Auth
# ==========================================

def test_login_and_me(client, gradebook):
    response = client.post(f"{API}/auth/login", json={"username": "teacher", "password": "secret123"})
    assert response.status_code == 200
    tokens = response.json()

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    body = me.json()
    assert body["username"] == "teacher"
    assert body["memberships"][0]["school_slug"] == "greenwood"
    assert body["memberships"][0]["role"] == "teacher"

    refreshed = client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200


def test_login_with_wrong_password(client, gradebook):
    response = client.post(f"{API}/auth/login", json={"username": "teacher", "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": {"code": "AUTH_FAILED", "message": "Invalid username or password", "details": {}},
    }


def test_refresh_token_cannot_be_used_as_access_token(client, gradebook):
    tokens = client.post(f"{API}/auth/login", json={"username": "teacher", "password": "secret123"}).json()

    response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert response.status_code == 401


# ==========================================
# Report cards
# ==========================================

def test_section_report_cards(client, gradebook):
    response = client.get(section_url(gradebook), headers=auth_headers(gradebook.teacher))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["ranking"] == "positional"
    assert body["class_name"] == "Grade 5"
    names = [c["student_name"] for c in body["report_cards"]]
    assert names == ["Alice Adams", "Bob Brown", "Cara Clark"]

    alice = body["report_cards"][0]
    assert alice["rank"] == 1
    assert alice["cohort_size"] == 3
    assert alice["overall_percentage"] == 83.33
    assert alice["overall_grade"] == "A"
    assert alice["grand_total_obtained"] == 225.0
    assert alice["attendance"] == {"present": 3, "absent": 1, "total": 4}
    assert body["report_cards"][2]["attendance"] is None


def test_section_report_cards_with_term_and_competition_ranking(client, gradebook):
    response = client.get(
        section_url(gradebook),
        params={"term": "Term 2", "ranking": "competition"},
        headers=auth_headers(gradebook.principal),
    )

    assert response.status_code == 200
    ranks = {c["student_name"]: c["rank"] for c in response.json()["report_cards"]}
    assert ranks == {"Alice Adams": 1, "Bob Brown": 3, "Cara Clark": 1}


def test_section_report_cards_unknown_term(client, gradebook):
    response = client.get(section_url(gradebook), params={"term": "Term 9"}, headers=auth_headers(gradebook.teacher))

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "NO_PUBLISHED_ASSESSMENTS"


def test_section_report_cards_missing_section(client, gradebook):
    response = client.get(
        f"{API}/schools/greenwood/report-cards/sections/9999",
        headers=auth_headers(gradebook.teacher),
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_section_report_cards_unknown_school(client, gradebook):
    response = client.get(
        f"{API}/schools/nowhere/report-cards/sections/{gradebook.section.id}",
        headers=auth_headers(gradebook.teacher),
    )
    assert response.status_code == 404


def test_section_report_cards_need_staff_role(client, gradebook):
    for user in (gradebook.alice_user, gradebook.parent, gradebook.accountant):
        response = client.get(section_url(gradebook), headers=auth_headers(user))
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"


def test_non_member_is_refused(client, gradebook):
    response = client.get(section_url(gradebook), headers=auth_headers(gradebook.outsider))
    assert response.status_code == 403


def test_missing_token(client, gradebook):
    response = client.get(section_url(gradebook), headers={"Authorization": "Token abc"})
    assert response.status_code == 401


def test_export_section(client, gradebook):
    response = client.get(
        section_url(gradebook, "/export"),
        params={"term": "Term 1"},
        headers=auth_headers(gradebook.teacher),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "report_cards_greenwood_" in response.headers["content-disposition"]
    assert response.headers["content-disposition"].endswith("_Term_1.xlsx")
    assert response.content[:2] == b"PK"


def test_student_sees_own_report_card(client, gradebook):
    response = client.get(student_url(gradebook.alice), headers=auth_headers(gradebook.alice_user))

    assert response.status_code == 200
    card = response.json()["report_card"]
    assert card["student_id"] == gradebook.alice.id
    assert card["rank"] == 1
    assert card["cohort_size"] == 3


def test_student_cannot_see_classmate(client, gradebook):
    response = client.get(student_url(gradebook.bob), headers=auth_headers(gradebook.alice_user))
    assert response.status_code == 403


def test_parent_sees_linked_child_only(client, gradebook):
    own = client.get(student_url(gradebook.cara), headers=auth_headers(gradebook.parent))
    assert own.status_code == 200
    assert own.json()["report_card"]["rank"] == 2

    other = client.get(student_url(gradebook.alice), headers=auth_headers(gradebook.parent))
    assert other.status_code == 403


def test_student_without_enrollment(client, gradebook):
    response = client.get(student_url(gradebook.dan), headers=auth_headers(gradebook.teacher))

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "NO_ACTIVE_ENROLLMENT"


# ==========================================
# Gradebook
# ==========================================

def test_grade_thresholds_round_trip_changes_grades(client, gradebook):
    bands = {"bands": [
        {"grade_label": "Distinction", "min_percentage": 80, "max_percentage": 100},
        {"grade_label": "Pass", "min_percentage": 0, "max_percentage": 79.99},
    ]}
    response = client.put(f"{API}/schools/greenwood/grade-thresholds", json=bands, headers=auth_headers(gradebook.principal))
    assert response.status_code == 200
    assert [b["grade_label"] for b in response.json()] == ["Distinction", "Pass"]

    listed = client.get(f"{API}/schools/greenwood/grade-thresholds", headers=auth_headers(gradebook.alice_user))
    assert len(listed.json()) == 2

    cards = client.get(section_url(gradebook), headers=auth_headers(gradebook.teacher)).json()["report_cards"]
    assert {c["student_name"]: c["overall_grade"] for c in cards} == {
        "Alice Adams": "Distinction",
        "Bob Brown": "Pass",
        "Cara Clark": "Distinction",
    }


def test_teacher_cannot_replace_thresholds(client, gradebook):
    response = client.put(
        f"{API}/schools/greenwood/grade-thresholds",
        json={"bands": []},
        headers=auth_headers(gradebook.teacher),
    )
    assert response.status_code == 403
    assert "principal" in response.json()["error"]["details"]["required_roles"]


def test_invalid_threshold_band(client, gradebook):
    response = client.put(
        f"{API}/schools/greenwood/grade-thresholds",
        json={"bands": [{"grade_label": "A", "min_percentage": 90, "max_percentage": 80}]},
        headers=auth_headers(gradebook.principal),
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_threshold_band_above_hundred_percent(client, gradebook):
    response = client.put(
        f"{API}/schools/greenwood/grade-thresholds",
        json={"bands": [{"grade_label": "A", "min_percentage": 90, "max_percentage": 1000, "grade_points": 250}]},
        headers=auth_headers(gradebook.principal),
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_assessment_lifecycle(client, gradebook):
    headers = auth_headers(gradebook.teacher)
    created = client.post(
        f"{API}/schools/greenwood/assessments",
        json={
            "class_section_id": gradebook.section.id,
            "subject_id": gradebook.science.id,
            "title": "Term 2 Project",
            "max_marks": 50,
            "term_label": "Term 2",
        },
        headers=headers,
    )
    assert created.status_code == 201
    assessment_id = created.json()["id"]

    marks = client.put(
        f"{API}/schools/greenwood/assessments/{assessment_id}/marks",
        json={"marks": [
            {"student_id": gradebook.alice.id, "marks": 10},
            {"student_id": gradebook.bob.id, "marks": 50},
            {"student_id": gradebook.cara.id, "marks": 20},
        ]},
        headers=headers,
    )
    assert marks.status_code == 200
    assert marks.json()["created"] == 3

    # Still a draft: Term 2 only has the Final
    before = client.get(section_url(gradebook), params={"term": "Term 2"}, headers=headers).json()
    assert before["report_cards"][0]["grand_total_max"] == 100.0

    published = client.post(
        f"{API}/schools/greenwood/assessments/{assessment_id}/publish",
        json={"is_published": True},
        headers=headers,
    )
    assert published.status_code == 200
    assert published.json()["is_published"] is True

    after = client.get(section_url(gradebook), params={"term": "Term 2"}, headers=headers).json()
    ranks = {c["student_name"]: c["rank"] for c in after["report_cards"]}
    assert after["report_cards"][0]["grand_total_max"] == 150.0
    assert ranks == {"Cara Clark": 1, "Alice Adams": 2, "Bob Brown": 3}

    listed = client.get(
        f"{API}/schools/greenwood/assessments",
        params={"section_id": gradebook.section.id, "term": "Term 2"},
        headers=headers,
    )
    assert {a["title"] for a in listed.json()} == {"Final", "Term 2 Project"}


def test_bulk_marks_validation_errors_are_reported(client, gradebook):
    response = client.put(
        f"{API}/schools/greenwood/assessments/{gradebook.draft.id}/marks",
        json={"marks": [{"student_id": gradebook.alice.id, "marks": 99}]},
        headers=auth_headers(gradebook.teacher),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["created"] == 0
    assert body["errors"][0]["student_id"] == gradebook.alice.id


def test_suspended_school_blocks_mutations_but_not_reads(client, gradebook, db):
    gradebook.school.status = SchoolStatus.SUSPENDED
    db.add(gradebook.school)
    db.commit()

    headers = auth_headers(gradebook.teacher)
    write = client.post(
        f"{API}/schools/greenwood/assessments/{gradebook.draft.id}/publish",
        json={},
        headers=headers,
    )
    assert write.status_code == 403
    assert write.json()["error"]["code"] == "SCHOOL_SUSPENDED"

    read = client.get(section_url(gradebook), headers=headers)
    assert read.status_code == 200
