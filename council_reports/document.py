"""Renderer-agnostic document model produced by the report builders.

A DocumentModel is an ordered list of sections. Renderers walk the list
and draw each section; they never recompute statistics. ``to_dict`` gives
a plain tree that any renderer (or a JSON consumer) can read.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class ReportKind(str, Enum):
    MEETING_MINUTES = "meeting_minutes"
    MEMBER_PERFORMANCE = "member_performance"
    MONTHLY_ACTIVITY = "monthly_activity"


# ── Sections ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Heading:
    text: str
    level: int = 1
    align: str = "left"


@dataclass(frozen=True)
class KeyValueBlock:
    """Label/value pairs, printed one per line or in two columns."""
    pairs: tuple[tuple[str, str], ...]
    columns: int = 1


@dataclass(frozen=True)
class Paragraph:
    text: str
    indent: int = 0
    style: str = "body"


@dataclass(frozen=True)
class Table:
    """Tabular region.

    ``col_widths`` are width hints in points, one per header column.
    ``flagged_rows`` lists indices of rows the renderer should emphasise.
    """
    title: str
    header: tuple[str, ...]
    col_widths: tuple[int, ...]
    rows: tuple[tuple[str, ...], ...] = ()
    flagged_rows: tuple[int, ...] = ()

    def __post_init__(self):
        if len(self.col_widths) != len(self.header):
            raise ValueError(
                f"Table '{self.title}' has {len(self.header)} columns "
                f"but {len(self.col_widths)} width hints"
            )
        for row in self.rows:
            if len(row) != len(self.header):
                raise ValueError(
                    f"Table '{self.title}' row has {len(row)} cells, "
                    f"expected {len(self.header)}"
                )

    @property
    def total_width(self) -> int:
        return sum(self.col_widths)


@dataclass(frozen=True)
class PageBreak:
    pass


@dataclass(frozen=True)
class SignatureBlock:
    label: str
    name: str
    title: str


@dataclass(frozen=True)
class Footer:
    """Running footer. ``{page}`` in a field is replaced by the renderer."""
    fields: tuple[str, ...]


Section = Union[Heading, KeyValueBlock, Paragraph, Table, PageBreak, SignatureBlock, Footer]

_SECTION_TYPES = {
    Heading: "heading",
    KeyValueBlock: "key_value",
    Paragraph: "paragraph",
    Table: "table",
    PageBreak: "page_break",
    SignatureBlock: "signature",
    Footer: "footer",
}


def _section_type(section: Section) -> str:
    """Tag name of a section, e.g. "table"."""
    return _SECTION_TYPES[type(section)]


def _section_to_dict(section: Section) -> dict:
    kind = _section_type(section)
    if isinstance(section, Heading):
        body = {"text": section.text, "level": section.level, "align": section.align}
    elif isinstance(section, KeyValueBlock):
        body = {"pairs": [list(p) for p in section.pairs], "columns": section.columns}
    elif isinstance(section, Paragraph):
        body = {"text": section.text, "indent": section.indent, "style": section.style}
    elif isinstance(section, Table):
        body = {
            "title": section.title,
            "header": list(section.header),
            "col_widths": list(section.col_widths),
            "rows": [list(r) for r in section.rows],
            "flagged_rows": list(section.flagged_rows),
        }
    elif isinstance(section, SignatureBlock):
        body = {"label": section.label, "name": section.name, "title": section.title}
    elif isinstance(section, Footer):
        body = {"fields": list(section.fields)}
    else:
        body = {}
    return {"type": kind, **body}


@dataclass
class DocumentModel:
    kind: ReportKind
    title: str
    sections: list = field(default_factory=list)

    def add(self, *sections: Section) -> "DocumentModel":
        for section in sections:
            if type(section) not in _SECTION_TYPES:
                raise TypeError(f"Not a document section: {section!r}")
            self.sections.append(section)
        return self

    # ---- Queries used by renderers and tests ----

    def of_type(self, cls) -> list:
        return [s for s in self.sections if isinstance(s, cls)]

    def table(self, title: str) -> Optional[Table]:
        for s in self.of_type(Table):
            if s.title == title:
                return s
        return None

    def pages(self) -> list[list]:
        """Split sections at PageBreaks. Footers are not part of any page."""
        pages: list[list] = [[]]
        for s in self.sections:
            if isinstance(s, PageBreak):
                pages.append([])
            elif not isinstance(s, Footer):
                pages[-1].append(s)
        return pages

    @property
    def footer(self) -> Optional[Footer]:
        footers = self.of_type(Footer)
        return footers[-1] if footers else None

    # ---- Serialization ----

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "sections": [_section_to_dict(s) for s in self.sections],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Deterministic JSON: same model, same bytes."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True, ensure_ascii=False)
