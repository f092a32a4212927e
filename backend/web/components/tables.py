"""
Record table for the admin screens.
"""

from typing import Callable, List, Optional, Sequence, Tuple

from .base import Component

Column = Tuple[str, str]  # (record key, header label)


class RecordTable(Component):
    """Render backend records as an accessible table.

    `row_actions(record)` may return pre-rendered HTML (links, small forms)
    for a trailing actions column.
    """

    def __init__(
        self,
        columns: Sequence[Column],
        rows: List[dict],
        *,
        caption: str = "",
        empty_text: str = "No records yet.",
        row_actions: Optional[Callable[[dict], str]] = None,
    ) -> None:
        self.columns = list(columns)
        self.rows = rows
        self.caption = caption
        self.empty_text = empty_text
        self.row_actions = row_actions

    @classmethod
    def _cell(cls, value) -> str:
        if isinstance(value, bool):
            return "Yes" if value else "No"
        if isinstance(value, (list, tuple)):
            return cls.escape(", ".join(str(v) for v in value))
        return cls.escape(value)

    def render(self) -> str:
        caption_html = f"<caption>{self.escape(self.caption)}</caption>" if self.caption else ""
        if not self.rows:
            return f'<div class="record-table record-table--empty">{caption_html}<p class="text-muted">{self.escape(self.empty_text)}</p></div>'
        head = "".join(f'<th scope="col">{self.escape(label)}</th>' for _key, label in self.columns)
        if self.row_actions:
            head += '<th scope="col"><span class="sr-only">Actions</span></th>'
        body_rows = []
        for record in self.rows:
            cells = "".join(f"<td>{self._cell(record.get(key))}</td>" for key, _label in self.columns)
            if self.row_actions:
                cells += f'<td class="record-actions">{self.row_actions(record)}</td>'
            body_rows.append(f"<tr>{cells}</tr>")
        return f"""
        <table class="record-table">
            {caption_html}
            <thead><tr>{head}</tr></thead>
            <tbody>{''.join(body_rows)}</tbody>
        </table>"""
