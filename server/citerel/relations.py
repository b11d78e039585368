from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from server.citerel.config import Settings
from server.citerel.expand import ProgressCallback, expand_relations
from server.citerel.sources.crossref import CrossrefDoiResolver
from server.citerel.sources.opencitations import OpenCitationsClient
from server.citerel.types import BibEntry, Direction, ExpansionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CitationRelationFetcher:
    """Find the records an entry cites, or the records citing it.

    Holds no per-call state: the direction and the progress sink are passed to
    every call, so one instance can serve concurrent lookups.
    """

    index: OpenCitationsClient
    resolve_single: Callable[[str], BibEntry | None]
    max_workers: int = 1

    name = "CitationRelationFetcher"

    @classmethod
    def from_settings(cls, settings: Settings) -> "CitationRelationFetcher":
        index = OpenCitationsClient(
            base_url=settings.opencitations_url,
            token=settings.opencitations_token,
            user_agent=settings.crossref_user_agent,
            timeout_seconds=settings.api_timeout_seconds,
        )
        resolver = CrossrefDoiResolver(
            user_agent=settings.crossref_user_agent,
            mailto=settings.crossref_mailto,
            timeout_seconds=settings.api_timeout_seconds,
            retries=settings.doi_fetch_retries,
        )
        return cls(index=index, resolve_single=resolver.resolve, max_workers=settings.expand_max_workers)

    def expand(
        self,
        entry: BibEntry,
        direction: Direction,
        *,
        progress: ProgressCallback | None = None,
    ) -> ExpansionResult:
        """Like :meth:`resolve_relations` but also returns the per-DOI failures.

        :class:`~server.citerel.errors.ConnectivityError` and
        :class:`~server.citerel.errors.ServiceError` from the citation index
        propagate; no partial result is produced in that case.
        """
        doi = entry.doi
        related = self.index.fetch_relation_list(doi, direction)
        logger.info("Found %d %s entries for %r", len(related), direction.label, doi)
        result = expand_relations(
            doi,
            related,
            self.resolve_single,
            progress=progress,
            max_workers=self.max_workers,
        )
        if result.failures:
            logger.info("Skipped %d related DOIs that could not be fetched", len(result.failures))
        return result

    def resolve_relations(
        self,
        entry: BibEntry,
        direction: Direction,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[BibEntry]:
        return self.expand(entry, direction, progress=progress).records
