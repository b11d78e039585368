from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Direction(Enum):
    """Which side of the citation graph to follow.

    The value is the field name the OpenCitations metadata API uses for the
    relation: ``reference`` lists the works the seed cites, ``citation`` lists
    the works that cite the seed.
    """

    CITING = "reference"
    CITED_BY = "citation"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str) -> "Direction":
        key = (raw or "").strip().lower().replace("_", "-")
        if key in {"citing", "reference", "references"}:
            return cls.CITING
        if key in {"cited-by", "citedby", "citation", "citations"}:
            return cls.CITED_BY
        raise ValueError(f"Unknown citation direction: {raw!r}")


# Rendered in this order; anything else follows alphabetically.
_BIBTEX_FIELD_ORDER = (
    "author",
    "title",
    "journal",
    "booktitle",
    "year",
    "volume",
    "number",
    "pages",
    "publisher",
    "issn",
    "isbn",
    "doi",
    "url",
)


@dataclass(frozen=True)
class BibEntry:
    entry_type: str = "misc"
    citation_key: str = ""
    fields: dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str | None:
        value = self.fields.get(name.lower())
        return value if value else None

    @property
    def doi(self) -> str:
        return self.get("doi") or ""

    def to_dict(self) -> dict:
        return {"entry_type": self.entry_type, "citation_key": self.citation_key, "fields": dict(self.fields)}

    def to_bibtex(self) -> str:
        names = [n for n in _BIBTEX_FIELD_ORDER if self.fields.get(n)]
        names += sorted(n for n in self.fields if n not in _BIBTEX_FIELD_ORDER and self.fields[n])
        lines = [f"@{self.entry_type}{{{self.citation_key},"]
        for name in names:
            lines.append(f"  {name} = {{{self.fields[name]}}},")
        lines.append("}")
        return "\n".join(lines)


@dataclass
class ExpansionResult:
    records: list[BibEntry] = field(default_factory=list)
    # (doi, reason) for every related DOI whose lookup raised.
    failures: list[tuple[str, str]] = field(default_factory=list)
    attempted: int = 0
    skipped: int = 0
