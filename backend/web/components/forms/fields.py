"""
Form field components.

These small components keep labels, help text and error text consistent
across the sign-in, registration and admin forms.
"""

from typing import Optional, Sequence, Tuple

from ..base import Component


class FormField(Component):
    """Wrapper that renders label, input slot, help, and error text."""

    def __init__(
        self,
        field_id: str,
        label: str,
        *,
        required: bool = False,
        help_text: Optional[str] = None,
        error_text: Optional[str] = None,
        state: str = "default",
    ) -> None:
        self.field_id = field_id
        self.label = label
        self.required = required
        self.help_text = help_text
        self.error_text = error_text
        self.state = "error" if error_text else state

    def render(self, input_html: str) -> str:
        state_class = f" form-field--{self.state}" if self.state != "default" else ""
        required_marker = (
            '<span class="form-required" aria-hidden="true">*</span>'
            if self.required
            else ""
        )
        help_html = (
            f'<p class="form-help" id="{self.field_id}-help">{self.escape(self.help_text)}</p>'
            if self.help_text
            else ""
        )
        error_html = (
            f'<p class="form-error" role="alert" id="{self.field_id}-error">{self.escape(self.error_text)}</p>'
            if self.error_text
            else ""
        )

        label_attrs = self.attributes(
            for_=self.field_id,
            class_="form-label",
        )

        return (
            f'<div class="form-field{state_class}">'
            f"<label {label_attrs}>"
            f"{self.escape(self.label)}{required_marker}"
            "</label>"
            f"{input_html}"
            f"{help_html}"
            f"{error_html}"
            "</div>"
        )

    def _aria(self) -> dict:
        return {
            "aria_describedby": f"{self.field_id}-help" if self.help_text else None,
            "aria_invalid": "true" if self.error_text else "false",
        }


class TextAreaField(FormField):
    """Convenience helper for textareas."""

    def render(self, value: str = "", rows: int = 5, **attrs: str) -> str:
        textarea_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            rows=str(rows),
            required=self.required,
            **self._aria(),
            **attrs,
        )
        input_html = f"<textarea {textarea_attrs}>{self.escape(value)}</textarea>"
        return super().render(input_html)


class TextInputField(FormField):
    """Single-line input (text, email, password, number, date, url)."""

    def render(
        self,
        *,
        value: str = "",
        input_type: str = "text",
        autocomplete: Optional[str] = None,
        placeholder: Optional[str] = None,
        **attrs: str,
    ) -> str:
        input_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            type=input_type,
            value=value if input_type != "password" else None,
            autocomplete=autocomplete,
            placeholder=placeholder,
            required=self.required,
            **self._aria(),
            **attrs,
        )
        input_html = f"<input {input_attrs}>"
        return super().render(input_html)


class CheckboxField(FormField):
    """Single checkbox; the label follows the box."""

    def render(self, *, checked: bool = False) -> str:
        input_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            type="checkbox",
            value="true",
            checked=checked,
            required=self.required,
            **self._aria(),
        )
        error_html = (
            f'<p class="form-error" role="alert" id="{self.field_id}-error">{self.escape(self.error_text)}</p>'
            if self.error_text
            else ""
        )
        return (
            '<div class="form-field form-field--checkbox">'
            f"<input {input_attrs}>"
            f'<label for="{self.escape(self.field_id)}" class="form-label">{self.escape(self.label)}</label>'
            f"{error_html}"
            "</div>"
        )


class SelectField(FormField):
    """Select box built from (value, label) options."""

    def render(self, *, options: Sequence[Tuple[str, str]], value: str = "", placeholder: str = "") -> str:
        option_html = []
        if placeholder:
            option_html.append(f'<option value="">{self.escape(placeholder)}</option>')
        for opt_value, opt_label in options:
            selected = " selected" if str(opt_value) == str(value) else ""
            option_html.append(
                f'<option value="{self.escape(opt_value)}"{selected}>{self.escape(opt_label)}</option>'
            )
        select_attrs = self.attributes(
            id=self.field_id,
            name=self.field_id,
            class_="form-input",
            required=self.required,
            **self._aria(),
        )
        return super().render(f"<select {select_attrs}>{''.join(option_html)}</select>")
