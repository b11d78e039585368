from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from server.citerel.errors import DoiFetchError
from server.citerel.types import BibEntry, ExpansionResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]


class ProgressTracker:
    """Progress sink that another thread can poll while a lookup runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0.0
        self._message = ""

    def __call__(self, message: str, fraction: float) -> None:
        with self._lock:
            self._value = min(1.0, max(0.0, float(fraction)))
            self._message = message

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    @property
    def message(self) -> str:
        with self._lock:
            return self._message

    def reset(self) -> None:
        self("", 0.0)


def _should_skip(item: str, seed_doi: str) -> bool:
    return item == seed_doi or not item


def expand_relations(
    seed_doi: str,
    related_dois: Sequence[str],
    resolve_single: Callable[[str], BibEntry | None],
    *,
    progress: ProgressCallback | None = None,
    max_workers: int = 1,
) -> ExpansionResult:
    """Resolve every related DOI into a record, best effort.

    Entries equal to ``seed_doi`` and empty entries are skipped. A lookup that
    raises :class:`DoiFetchError` is left out of ``records`` and listed in
    ``failures``; it never aborts the remaining lookups. Progress is reported
    as ``position / total`` after every entry, skipped ones included, so it
    ends at 1.0. Records keep the order of ``related_dois`` even when lookups
    run on several workers.
    """
    seed_doi = seed_doi or ""
    result = ExpansionResult()
    total = len(related_dois)
    if not total:
        return result

    def report(done: int) -> None:
        if progress:
            progress(f"Resolved {done}/{total} related DOIs", done / total)

    workers = max(1, int(max_workers))
    if workers == 1 or total <= 1:
        for idx, item in enumerate(related_dois, start=1):
            logger.debug("Current item %d/%d", idx, total)
            if _should_skip(item, seed_doi):
                result.skipped += 1
            else:
                result.attempted += 1
                try:
                    record = resolve_single(item)
                except DoiFetchError as e:
                    logger.debug("No information for DOI %s: %s", item, e.reason)
                    result.failures.append((item, e.reason))
                    record = None
                if record is not None:
                    result.records.append(record)
            report(idx)
        return result

    planned = [(idx, item) for idx, item in enumerate(related_dois) if not _should_skip(item, seed_doi)]
    result.skipped = total - len(planned)
    result.attempted = len(planned)
    completed = result.skipped
    if completed:
        report(completed)

    records_by_idx: dict[int, BibEntry] = {}
    failures_by_idx: dict[int, tuple[str, str]] = {}
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = {ex.submit(resolve_single, item): (idx, item) for idx, item in planned}
        try:
            for fut in as_completed(futures):
                idx, item = futures[fut]
                try:
                    record = fut.result()
                except DoiFetchError as e:
                    logger.debug("No information for DOI %s: %s", item, e.reason)
                    failures_by_idx[idx] = (item, e.reason)
                    record = None
                if record is not None:
                    records_by_idx[idx] = record
                completed += 1
                report(completed)
        except Exception:
            for fut in futures:
                fut.cancel()
            raise

    result.records = [records_by_idx[idx] for idx in sorted(records_by_idx)]
    result.failures = [failures_by_idx[idx] for idx in sorted(failures_by_idx)]
    return result
