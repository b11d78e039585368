from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import requests

from server.citerel.errors import DoiFetchError
from server.citerel.normalize import citation_key_part, normalize_doi
from server.citerel.sources.http import backoff_sleep
from server.citerel.types import BibEntry

logger = logging.getLogger(__name__)

_ENTRY_TYPES = {
    "journal-article": "article",
    "proceedings-article": "inproceedings",
    "book": "book",
    "monograph": "book",
    "edited-book": "book",
    "reference-book": "book",
    "book-chapter": "incollection",
    "book-section": "incollection",
    "book-part": "incollection",
    "dissertation": "phdthesis",
    "report": "techreport",
    "posted-content": "unpublished",
}


def _first_str(value: object) -> str | None:
    if isinstance(value, list) and value:
        value = value[0]
    if isinstance(value, str) and value.strip():
        return " ".join(value.split())
    return None


def _crossref_year(msg: dict) -> str | None:
    for key in ("published-print", "published-online", "issued", "created"):
        parts = ((msg.get(key) or {}).get("date-parts") or [[None]])[0]
        try:
            return str(int(parts[0]))
        except Exception:
            continue
    return None


def _crossref_authors(msg: dict) -> list[str]:
    authors = msg.get("author")
    if not isinstance(authors, list):
        return []
    names: list[str] = []
    for author in authors:
        if not isinstance(author, dict):
            continue
        family = _first_str(author.get("family"))
        given = _first_str(author.get("given"))
        if family and given:
            names.append(f"{family}, {given}")
        elif family:
            names.append(family)
        else:
            literal = _first_str(author.get("name")) or _first_str(author.get("literal"))
            if literal:
                names.append(f"{{{literal}}}")
    return names


def _citation_key(msg: dict, year: str | None) -> str:
    authors = msg.get("author")
    first = authors[0] if isinstance(authors, list) and authors else {}
    if not isinstance(first, dict):
        first = {}
    name = _first_str(first.get("family")) or _first_str(first.get("name")) or ""
    base = citation_key_part(name.split()[-1] if name else "")
    return f"{base}{year or ''}"


def crossref_to_entry(msg: dict) -> BibEntry:
    entry_type = _ENTRY_TYPES.get(str(msg.get("type") or "").lower(), "misc")
    year = _crossref_year(msg)
    container = _first_str(msg.get("container-title"))
    fields: dict[str, str] = {}

    authors = _crossref_authors(msg)
    if authors:
        fields["author"] = " and ".join(authors)
    title = _first_str(msg.get("title"))
    if title:
        fields["title"] = title
    if container:
        fields["booktitle" if entry_type in {"inproceedings", "incollection"} else "journal"] = container
    if year:
        fields["year"] = year
    for src, dest in (("volume", "volume"), ("issue", "number"), ("page", "pages"), ("publisher", "publisher")):
        value = _first_str(msg.get(src))
        if value:
            fields[dest] = value.replace("-", "--") if dest == "pages" else value
    issn = _first_str(msg.get("ISSN"))
    if issn:
        fields["issn"] = issn
    isbn = _first_str(msg.get("ISBN"))
    if isbn:
        fields["isbn"] = isbn
    doi = normalize_doi(str(msg.get("DOI") or ""))
    if doi:
        fields["doi"] = doi
    url = _first_str(msg.get("URL"))
    if url:
        fields["url"] = url

    return BibEntry(entry_type=entry_type, citation_key=_citation_key(msg, year), fields=fields)


@dataclass
class CrossrefDoiResolver:
    """Resolve one DOI into a :class:`BibEntry` through the Crossref works API."""

    user_agent: str
    mailto: str = ""
    timeout_seconds: float = 20.0
    retries: int = 3
    _session_local: threading.local = field(default_factory=threading.local, init=False, repr=False)

    def _client(self) -> requests.Session:
        session = getattr(self._session_local, "session", None)
        if session is None:
            session = requests.Session()
            self._session_local.session = session
        return session

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent}

    def get_work_by_doi(self, doi: str) -> dict | None:
        doi_norm = normalize_doi(doi)
        if not doi_norm:
            return None
        url = f"https://api.crossref.org/works/{requests.utils.quote(doi_norm, safe='/')}"
        params = {"mailto": self.mailto} if self.mailto else None
        last_error = "no attempt made"
        attempts = max(1, int(self.retries))
        for attempt in range(attempts):
            try:
                resp = self._client().get(url, headers=self._headers(), params=params, timeout=self.timeout_seconds)
                if resp.status_code == 404:
                    return None
                resp.raise_for_status()
                return (resp.json() or {}).get("message")
            except requests.RequestException as e:
                last_error = str(e) or type(e).__name__
                if attempt + 1 < attempts:
                    backoff_sleep(attempt)
        raise DoiFetchError(doi, last_error)

    def resolve(self, doi: str) -> BibEntry | None:
        msg = self.get_work_by_doi(doi)
        if not isinstance(msg, dict):
            return None
        return crossref_to_entry(msg)
