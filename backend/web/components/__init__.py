# AspireLink Component System
# Pure Python Components for type-safe HTML generation

from .base import Component
from .layout import Layout
from .navigation import Navigation
from .notice import Notice
from .placeholders import AccessDenied, LoadingPlaceholder, NotFound, ProfileLoadingPlaceholder
from .tables import RecordTable
from .forms import (
    FormField,
    TextAreaField,
    TextInputField,
    CheckboxField,
    SelectField,
    SubmitButton,
    SignInForm,
    SignUpForm,
    AdminLoginForm,
    auth_error_message,
    StudentForm,
    MentorForm,
    STUDENT_FIELDS,
    MENTOR_FIELDS,
    collect_values,
    CohortForm,
    AssignmentForm,
)

__all__ = [
    "Component",
    "Layout",
    "Navigation",
    "Notice",
    "AccessDenied",
    "LoadingPlaceholder",
    "NotFound",
    "ProfileLoadingPlaceholder",
    "RecordTable",
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
