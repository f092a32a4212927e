"""
Form payload validation for the mentorship backend.
"""
from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from mentorship.models import AssignmentInput, CohortInput, ContactInput, MentorInput, StudentInput


def _student(**overrides):
    values = {
        "full_name": " Ada Lovelace ",
        "email_address": "Ada@Example.com",
        "university_name": "UofT",
        "academic_program": "Computer Science",
        "year_of_study": "3",
        "nominated_by": "Prof. Babbage",
        "professor_email": "babbage@uni.test",
    }
    values.update(overrides)
    return StudentInput(**values)


def test_student_strips_and_lowercases():
    student = _student(phone_number="   ", preferred_disciplines="Software,\nData ,")
    assert student.full_name == "Ada Lovelace"
    assert student.email_address == "ada@example.com"
    assert student.phone_number is None
    assert student.preferred_disciplines == ["Software", "Data"]


def test_student_requires_nominating_professor():
    with pytest.raises(ValidationError):
        _student(nominated_by="  ")


def test_student_rejects_email_without_at():
    with pytest.raises(ValidationError):
        _student(professor_email="babbage.uni.test")


def test_mentor_blank_experience_becomes_none_and_bounds_apply():
    assert MentorInput(full_name="Grace", years_experience="").years_experience is None
    assert MentorInput(full_name="Grace", years_experience="12").years_experience == 12
    with pytest.raises(ValidationError):
        MentorInput(full_name="Grace", years_experience="120")


def test_cohort_end_must_not_precede_start():
    with pytest.raises(ValidationError):
        CohortInput(name="Spring", start_date=date(2026, 5, 1), end_date=date(2026, 1, 1))


def test_cohort_defaults_and_session_length_bounds():
    cohort = CohortInput(name="Spring", start_date="2026-01-10", end_date="2026-05-10")
    assert cohort.sessions_per_month == 2
    assert cohort.session_duration_minutes == 30
    with pytest.raises(ValidationError):
        CohortInput(name="Spring", start_date="2026-01-10", end_date="2026-05-10", session_duration_minutes=5)


def test_assignment_blank_cohort_is_optional():
    assignment = AssignmentInput(mentor_id="2", student_id="3", cohort_id="")
    assert assignment.cohort_id is None
    assert assignment.to_json() == {"mentorId": 2, "studentId": 3}


def test_assignment_requires_both_parties():
    with pytest.raises(ValidationError):
        AssignmentInput(mentor_id="", student_id="3")


def test_contact_subject_is_optional():
    contact = ContactInput(name="Ada", email="ada@example.com", subject=" ", message="Hello")
    assert contact.subject is None
