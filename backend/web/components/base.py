"""
Base Component Class for AspireLink UI Components

Pure Python HTML generation: every page and form is a small class with a
`render()` method. Escaping is explicit and happens in one place.
"""

from typing import Optional, Any
import html


class Component:
    """Base class for all UI components.

    Subclasses build markup with f-strings and must pass every user-provided
    value through `escape` (or `attributes`, which escapes values).
    """

    def render(self) -> str:
        """Render the component as an HTML string."""
        raise NotImplementedError("Subclasses must implement render()")

    @staticmethod
    def escape(text: Optional[Any]) -> str:
        """Escape HTML entities; None renders as an empty string."""
        return html.escape(str(text)) if text is not None else ""

    @staticmethod
    def classes(*args: str, **conditionals: bool) -> str:
        """Build a CSS class string with conditional classes.

        Example:
            >>> Component.classes("btn", "btn-primary", disabled=True, active=False)
            "btn btn-primary disabled"
        """
        classes = list(args)
        classes.extend(key for key, value in conditionals.items() if value)
        return " ".join(classes)

    @staticmethod
    def attributes(**attrs: Any) -> str:
        """Build HTML attributes from keyword arguments.

        Trailing underscores map reserved names (`class_` -> `class`), inner
        underscores become hyphens (`aria_label` -> `aria-label`). True renders
        a boolean attribute; False and None drop the attribute.

        Example:
            >>> Component.attributes(id="test", data_value="123", disabled=True)
            'id="test" data-value="123" disabled'
        """
        result = []
        for key, value in attrs.items():
            if key.endswith("_"):
                key = key[:-1]
            else:
                key = key.replace("_", "-")

            if value is True:
                result.append(key)
            elif value is not False and value is not None:
                result.append(f'{key}="{html.escape(str(value))}"')

        return " ".join(result)
