"""
Form components for AspireLink.

Basic building blocks (fields, submit button) plus the concrete auth,
registration and admin forms built from them.
"""

from .fields import FormField, TextAreaField, TextInputField, CheckboxField, SelectField
from .submit import SubmitButton
from .auth_forms import SignInForm, SignUpForm, AdminLoginForm, auth_error_message
from .registration_forms import StudentForm, MentorForm, STUDENT_FIELDS, MENTOR_FIELDS, collect_values
from .admin_forms import CohortForm, AssignmentForm

__all__ = [
    "FormField",
    "TextAreaField",
    "TextInputField",
    "CheckboxField",
    "SelectField",
    "SubmitButton",
    "SignInForm",
    "SignUpForm",
    "AdminLoginForm",
    "auth_error_message",
    "StudentForm",
    "MentorForm",
    "STUDENT_FIELDS",
    "MENTOR_FIELDS",
    "collect_values",
    "CohortForm",
    "AssignmentForm",
]
