"""Inline notification banner (errors, confirmations)."""

from .base import Component


class Notice(Component):
    def __init__(self, message: str, *, kind: str = "error") -> None:
        self.message = message
        self.kind = kind

    def render(self) -> str:
        role = "alert" if self.kind == "error" else "status"
        return (
            f'<div class="notice notice--{self.escape(self.kind)}" role="{role}">'
            f"{self.escape(self.message)}</div>"
        )
