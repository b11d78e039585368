from __future__ import annotations

import re
import unicodedata


_DOI_PREFIX_RE = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE)
_DOI_RE = re.compile(r"^10\.\d{4,9}/\S+$")
_KEY_RE = re.compile(r"[^a-z0-9]+")


def normalize_doi(raw: str) -> str | None:
    """Strip whitespace and a resolver prefix, lowercase; ``None`` if not a DOI.

    The suffix is kept whole: SICI-style DOIs contain ``<``, ``>``, ``;`` and ``#``.
    """
    if not raw:
        return None
    candidate = _DOI_PREFIX_RE.sub("", raw.strip()).strip()
    if not _DOI_RE.match(candidate):
        return None
    return candidate.lower()


def citation_key_part(text: str) -> str:
    folded = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    return _KEY_RE.sub("", folded.lower())
