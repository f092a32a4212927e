"""
Admin forms: cohorts and mentor/student assignments.
"""

from typing import Dict, List, Optional

from ..base import Component
from ..notice import Notice
from .fields import SelectField, TextAreaField, TextInputField
from .submit import SubmitButton


class CohortForm(Component):
    def __init__(self, values: Optional[dict] = None, errors: Optional[Dict[str, str]] = None, notice: Optional[str] = None):
        self.values = values or {}
        self.errors = errors or {}
        self.notice = notice

    def render(self) -> str:
        v = self.values
        e = self.errors
        notice_html = Notice(self.notice).render() if self.notice else ""
        fields = [
            TextInputField("name", "Cohort name", required=True, error_text=e.get("name")).render(
                value=v.get("name", ""), class_="form-input"
            ),
            TextAreaField("description", "Description", error_text=e.get("description")).render(
                value=v.get("description", ""), rows=3, class_="form-input"
            ),
            TextInputField("start_date", "Start date", required=True, error_text=e.get("start_date")).render(
                value=v.get("start_date", ""), input_type="date", class_="form-input"
            ),
            TextInputField("end_date", "End date", required=True, error_text=e.get("end_date")).render(
                value=v.get("end_date", ""), input_type="date", class_="form-input"
            ),
            TextInputField("sessions_per_month", "Sessions per month", error_text=e.get("sessions_per_month")).render(
                value=str(v.get("sessions_per_month", 2)), input_type="number", min="1", max="8", class_="form-input"
            ),
            TextInputField(
                "session_duration_minutes", "Session length (minutes)", error_text=e.get("session_duration_minutes")
            ).render(
                value=str(v.get("session_duration_minutes", 30)), input_type="number", min="15", max="180", class_="form-input"
            ),
        ]
        return f"""
        <section class="form-card">
            <h2>New cohort</h2>
            {notice_html}
            <form method="post" action="/admin/cohorts" class="cohort-form">
                {''.join(fields)}
                <div class="form-actions">{SubmitButton("Create cohort").render()}</div>
            </form>
        </section>"""


class AssignmentForm(Component):
    """Pair an active mentor with an active student, optionally in a cohort."""

    def __init__(
        self,
        *,
        mentors: List[dict],
        students: List[dict],
        cohorts: Optional[List[dict]] = None,
        values: Optional[dict] = None,
        notice: Optional[str] = None,
    ):
        self.mentors = mentors
        self.students = students
        self.cohorts = cohorts or []
        self.values = values or {}
        self.notice = notice

    @staticmethod
    def _options(records: List[dict], label_key: str) -> List[tuple]:
        return [
            (str(r.get("id")), str(r.get(label_key) or r.get("fullName") or r.get("id")))
            for r in records
            if r.get("id") is not None and r.get("isActive", True)
        ]

    def render(self) -> str:
        notice_html = Notice(self.notice).render() if self.notice else ""
        mentor_select = SelectField("mentor_id", "Mentor", required=True).render(
            options=self._options(self.mentors, "fullName"),
            value=str(self.values.get("mentor_id", "")),
            placeholder="Select a mentor",
        )
        student_select = SelectField("student_id", "Student", required=True).render(
            options=self._options(self.students, "fullName"),
            value=str(self.values.get("student_id", "")),
            placeholder="Select a student",
        )
        cohort_select = SelectField("cohort_id", "Cohort").render(
            options=self._options(self.cohorts, "name"),
            value=str(self.values.get("cohort_id", "")),
            placeholder="No cohort",
        )
        return f"""
        <section class="form-card">
            <h2>New assignment</h2>
            {notice_html}
            <form method="post" action="/admin/assignments" class="assignment-form">
                {mentor_select}
                {student_select}
                {cohort_select}
                <div class="form-actions">{SubmitButton("Assign").render()}</div>
            </form>
        </section>"""
