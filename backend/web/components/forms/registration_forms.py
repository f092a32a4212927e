"""
Student and mentor forms.

The same forms serve self-registration (/register-student, /register-mentor)
and the admin create/edit screens; only the action URL and button label
differ. Field names match the snake_case attributes of
`mentorship.models.StudentInput` / `MentorInput`.
"""

from typing import Dict, List, Optional, Tuple

from ..base import Component
from ..notice import Notice
from .fields import CheckboxField, TextAreaField, TextInputField
from .submit import SubmitButton

# (field_id, label, kind, required); kind is an input type, "textarea", "list" or "checkbox"
FieldSpec = Tuple[str, str, str, bool]

STUDENT_FIELDS: List[FieldSpec] = [
    ("full_name", "Full name", "text", True),
    ("email_address", "Email address", "email", True),
    ("phone_number", "Phone number", "tel", False),
    ("linkedin_url", "LinkedIn profile", "url", False),
    ("university_name", "University", "text", True),
    ("academic_program", "Academic program", "text", True),
    ("year_of_study", "Year of study", "text", True),
    ("nominated_by", "Nominating professor", "text", True),
    ("professor_email", "Professor email", "email", True),
    ("career_interests", "Career interests", "textarea", False),
    ("preferred_disciplines", "Preferred disciplines (comma separated)", "list", False),
    ("mentoring_topics", "Mentoring topics (comma separated)", "list", False),
    ("mentorship_goals", "Mentorship goals", "textarea", False),
    ("agreed_to_commitment", "I commit to the mentorship schedule", "checkbox", False),
    ("consent_to_contact", "I agree to be contacted by AspireLink", "checkbox", False),
]

MENTOR_FIELDS: List[FieldSpec] = [
    ("full_name", "Full name", "text", True),
    ("linkedin_url", "LinkedIn profile", "url", False),
    ("current_job_title", "Current job title", "text", False),
    ("company", "Company", "text", False),
    ("years_experience", "Years of experience", "number", False),
    ("education", "Education", "text", False),
    ("skills", "Skills (comma separated)", "list", False),
    ("location", "Location", "text", False),
    ("time_zone", "Time zone", "text", False),
    ("profile_summary", "Profile summary", "textarea", False),
    ("preferred_disciplines", "Preferred disciplines (comma separated)", "list", False),
    ("mentoring_topics", "Mentoring topics (comma separated)", "list", False),
    ("availability", "Availability (comma separated)", "list", False),
    ("motivation", "Why do you want to mentor?", "textarea", False),
    ("agreed_to_commitment", "I commit to the mentorship schedule", "checkbox", False),
    ("consent_to_contact", "I agree to be contacted by AspireLink", "checkbox", False),
]


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _is_checked(value) -> bool:
    if isinstance(value, str):
        return value.lower() in ("true", "on", "1", "yes")
    return bool(value)


class RegistrationForm(Component):
    """Data-driven form over a list of field specs."""

    fields: List[FieldSpec] = []
    title = ""

    def __init__(
        self,
        *,
        action: str,
        submit_label: str = "Submit",
        values: Optional[Dict[str, object]] = None,
        errors: Optional[Dict[str, str]] = None,
        notice: Optional[str] = None,
        title: Optional[str] = None,
    ) -> None:
        self.action = action
        self.submit_label = submit_label
        self.values = values or {}
        self.errors = errors or {}
        self.notice = notice
        if title is not None:
            self.title = title

    def _render_field(self, spec: FieldSpec) -> str:
        field_id, label, kind, required = spec
        value = self.values.get(field_id)
        error = self.errors.get(field_id)
        if kind == "checkbox":
            return CheckboxField(field_id, label, error_text=error).render(checked=_is_checked(value))
        if kind == "textarea":
            return TextAreaField(field_id, label, required=required, error_text=error).render(
                value=_as_text(value), rows=4, class_="form-input"
            )
        input_type = "text" if kind == "list" else kind
        return TextInputField(field_id, label, required=required, error_text=error).render(
            value=_as_text(value), input_type=input_type, class_="form-input"
        )

    def render(self) -> str:
        notice_html = Notice(self.notice).render() if self.notice else ""
        fields_html = "\n".join(self._render_field(spec) for spec in self.fields)
        title_html = f"<h1>{self.escape(self.title)}</h1>" if self.title else ""
        return f"""
        <section class="form-card">
            {title_html}
            {notice_html}
            <form method="post" action="{self.escape(self.action)}" class="registration-form">
                {fields_html}
                <div class="form-actions">{SubmitButton(self.submit_label).render()}</div>
            </form>
        </section>"""


class StudentForm(RegistrationForm):
    fields = STUDENT_FIELDS
    title = "Student registration"


class MentorForm(RegistrationForm):
    fields = MENTOR_FIELDS
    title = "Mentor registration"


def collect_values(form, fields: List[FieldSpec]) -> Dict[str, object]:
    """Read submitted form data for `fields`; unchecked boxes become False."""
    values: Dict[str, object] = {}
    for field_id, _label, kind, _required in fields:
        if kind == "checkbox":
            values[field_id] = _is_checked(form.get(field_id))
        else:
            values[field_id] = str(form.get(field_id) or "")
    return values
