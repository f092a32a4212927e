"""
Request payloads for the mentorship backend API.

Why: Validate and normalize form input once, before it leaves the web process.
Field names are snake_case in Python and camelCase on the wire
(`model_dump(by_alias=True)`).

Behavior:
- Blank optional strings become None.
- List fields accept either a list or a comma/newline separated string, the
  way the HTML forms submit them.
"""

from __future__ import annotations

from datetime import date
import re

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from pydantic.functional_validators import field_validator


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


def _strip_or_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v if v else None
    return v


def _split_list(v):
    if v is None:
        return []
    if isinstance(v, str):
        return [item.strip() for item in re.split(r"[,\n]", v) if item.strip()]
    if isinstance(v, (list, tuple)):
        return [str(item).strip() for item in v if str(item).strip()]
    return v


class StudentInput(_Payload):
    full_name: str = Field(..., min_length=1, max_length=200)
    email_address: str = Field(..., min_length=3, max_length=320)
    phone_number: str | None = Field(default=None, max_length=40)
    university_name: str = Field(..., min_length=1, max_length=200)
    academic_program: str = Field(..., min_length=1, max_length=200)
    year_of_study: str = Field(..., min_length=1, max_length=40)
    nominated_by: str = Field(..., min_length=1, max_length=200)
    professor_email: str = Field(..., min_length=3, max_length=320)
    career_interests: str | None = Field(default=None, max_length=2000)
    preferred_disciplines: list[str] = Field(default_factory=list)
    mentoring_topics: list[str] = Field(default_factory=list)
    mentorship_goals: str | None = Field(default=None, max_length=4000)
    agreed_to_commitment: bool = False
    consent_to_contact: bool = False
    is_active: bool | None = None
    linkedin_url: str | None = Field(default=None, max_length=500)

    @field_validator(
        "full_name",
        "email_address",
        "university_name",
        "academic_program",
        "year_of_study",
        "nominated_by",
        "professor_email",
        mode="before",
    )
    @classmethod
    def _strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone_number", "career_interests", "mentorship_goals", "linkedin_url", mode="before")
    @classmethod
    def _strip_empty(cls, v):
        return _strip_or_none(v)

    @field_validator("preferred_disciplines", "mentoring_topics", mode="before")
    @classmethod
    def _as_list(cls, v):
        return _split_list(v)

    @field_validator("email_address", "professor_email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("invalid_email")
        return v.lower()


class MentorInput(_Payload):
    linkedin_url: str | None = Field(default=None, max_length=500)
    full_name: str = Field(..., min_length=1, max_length=200)
    current_job_title: str | None = Field(default=None, max_length=200)
    company: str | None = Field(default=None, max_length=200)
    years_experience: int | None = Field(default=None, ge=0, le=80)
    education: str | None = Field(default=None, max_length=500)
    skills: list[str] = Field(default_factory=list)
    location: str | None = Field(default=None, max_length=200)
    time_zone: str | None = Field(default=None, max_length=64)
    profile_summary: str | None = Field(default=None, max_length=4000)
    preferred_disciplines: list[str] = Field(default_factory=list)
    mentoring_topics: list[str] = Field(default_factory=list)
    availability: list[str] = Field(default_factory=list)
    motivation: str | None = Field(default=None, max_length=4000)
    agreed_to_commitment: bool = False
    consent_to_contact: bool = False
    is_active: bool | None = None

    @field_validator("full_name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator(
        "linkedin_url",
        "current_job_title",
        "company",
        "years_experience",
        "education",
        "location",
        "time_zone",
        "profile_summary",
        "motivation",
        mode="before",
    )
    @classmethod
    def _strip_empty(cls, v):
        return _strip_or_none(v)

    @field_validator("skills", "preferred_disciplines", "mentoring_topics", "availability", mode="before")
    @classmethod
    def _as_list(cls, v):
        return _split_list(v)


class CohortInput(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    start_date: date
    end_date: date
    sessions_per_month: int = Field(default=2, ge=1, le=8)
    session_duration_minutes: int = Field(default=30, ge=15, le=180)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def _strip_empty(cls, v):
        return _strip_or_none(v)

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_before_start")
        return self


class AssignmentInput(_Payload):
    mentor_id: int = Field(..., ge=1)
    student_id: int = Field(..., ge=1)
    cohort_id: int | None = Field(default=None, ge=1)

    @field_validator("cohort_id", mode="before")
    @classmethod
    def _blank_cohort(cls, v):
        return _strip_or_none(v)


class ContactInput(_Payload):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    subject: str | None = Field(default=None, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("name", "email", "message", mode="before")
    @classmethod
    def _strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("subject", mode="before")
    @classmethod
    def _strip_empty(cls, v):
        return _strip_or_none(v)


__all__ = ["StudentInput", "MentorInput", "CohortInput", "AssignmentInput", "ContactInput"]
