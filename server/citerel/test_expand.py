import threading
import time
import unittest

from server.citerel.errors import DoiFetchError
from server.citerel.expand import ProgressTracker, expand_relations
from server.citerel.types import BibEntry


def _entry(doi: str) -> BibEntry:
    return BibEntry(entry_type="article", citation_key=doi, fields={"doi": doi})


class _StubResolver:
    def __init__(self, *, failing: set[str] | None = None, missing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.missing = missing or set()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, doi: str) -> BibEntry | None:
        with self._lock:
            self.calls.append(doi)
        if doi in self.failing:
            raise DoiFetchError(doi, "not registered")
        if doi in self.missing:
            return None
        return _entry(doi)


class _Recorder:
    def __init__(self) -> None:
        self.values: list[float] = []
        self._lock = threading.Lock()

    def __call__(self, message: str, fraction: float) -> None:
        with self._lock:
            self.values.append(fraction)


class TestExpandRelations(unittest.TestCase):
    def test_skips_seed_and_blank_entries(self) -> None:
        resolver = _StubResolver()
        progress = _Recorder()
        result = expand_relations("10.1/X", ["10.1/X", "10.1/A", "", "10.1/B"], resolver, progress=progress)
        self.assertEqual(resolver.calls, ["10.1/A", "10.1/B"])
        self.assertEqual([r.doi for r in result.records], ["10.1/A", "10.1/B"])
        self.assertEqual(progress.values, [0.25, 0.5, 0.75, 1.0])
        self.assertEqual((result.attempted, result.skipped), (2, 2))

    def test_whitespace_entry_counts_as_attempt(self) -> None:
        resolver = _StubResolver(missing={" "})
        result = expand_relations("10.1/x", ["10.1/a", " ", ""], resolver)
        self.assertEqual(resolver.calls, ["10.1/a", " "])
        self.assertEqual((result.attempted, result.skipped), (2, 1))
        self.assertEqual([r.doi for r in result.records], ["10.1/a"])

    def test_single_failure_is_dropped(self) -> None:
        resolver = _StubResolver(failing={"10.1/b"})
        result = expand_relations("10.1/x", ["10.1/a", "10.1/b", "10.1/c"], resolver)
        self.assertEqual([r.doi for r in result.records], ["10.1/a", "10.1/c"])
        self.assertEqual(result.failures, [("10.1/b", "not registered")])
        self.assertEqual(resolver.calls, ["10.1/a", "10.1/b", "10.1/c"])

    def test_unresolved_doi_is_omitted_without_failure(self) -> None:
        result = expand_relations("", ["10.1/a", "10.1/b"], _StubResolver(missing={"10.1/a"}))
        self.assertEqual([r.doi for r in result.records], ["10.1/b"])
        self.assertEqual(result.failures, [])

    def test_duplicates_are_resolved_each_time(self) -> None:
        resolver = _StubResolver()
        result = expand_relations("10.1/x", ["10.1/a", "10.1/a"], resolver)
        self.assertEqual(resolver.calls, ["10.1/a", "10.1/a"])
        self.assertEqual(len(result.records), 2)

    def test_empty_list_reports_nothing(self) -> None:
        progress = _Recorder()
        result = expand_relations("10.1/x", [], _StubResolver(), progress=progress)
        self.assertEqual(result.records, [])
        self.assertEqual(progress.values, [])

    def test_unexpected_errors_propagate(self) -> None:
        def broken(doi: str) -> BibEntry | None:
            raise KeyError(doi)

        with self.assertRaises(KeyError):
            expand_relations("10.1/x", ["10.1/a"], broken)

    def test_parallel_keeps_input_order(self) -> None:
        delays = {"10.1/a": 0.05, "10.1/b": 0.0, "10.1/c": 0.02, "10.1/d": 0.0}

        def slow(doi: str) -> BibEntry | None:
            time.sleep(delays[doi])
            if doi == "10.1/c":
                raise DoiFetchError(doi, "boom")
            return _entry(doi)

        progress = _Recorder()
        result = expand_relations(
            "10.1/x",
            ["10.1/a", "10.1/x", "10.1/b", "10.1/c", "", "10.1/d"],
            slow,
            progress=progress,
            max_workers=4,
        )
        self.assertEqual([r.doi for r in result.records], ["10.1/a", "10.1/b", "10.1/d"])
        self.assertEqual(result.failures, [("10.1/c", "boom")])
        self.assertEqual((result.attempted, result.skipped), (4, 2))
        self.assertEqual(progress.values, sorted(progress.values))
        self.assertEqual(progress.values[0], 2 / 6)
        self.assertEqual(progress.values[-1], 1.0)
        self.assertEqual(len(progress.values), 5)

    def test_parallel_with_every_entry_skipped_finishes(self) -> None:
        progress = _Recorder()
        resolver = _StubResolver()
        result = expand_relations("10.1/x", ["10.1/x", ""], resolver, progress=progress, max_workers=3)
        self.assertEqual(resolver.calls, [])
        self.assertEqual(result.records, [])
        self.assertEqual(progress.values, [1.0])


class TestProgressTracker(unittest.TestCase):
    def test_tracks_latest_value(self) -> None:
        tracker = ProgressTracker()
        self.assertEqual(tracker.value, 0.0)
        expand_relations("10.1/x", ["10.1/a", "10.1/b", "10.1/c"], _StubResolver(), progress=tracker)
        self.assertEqual(tracker.value, 1.0)
        self.assertEqual(tracker.message, "Resolved 3/3 related DOIs")
        tracker.reset()
        self.assertEqual(tracker.value, 0.0)

    def test_clamps_to_unit_interval(self) -> None:
        tracker = ProgressTracker()
        tracker("over", 1.5)
        self.assertEqual(tracker.value, 1.0)
        tracker("under", -0.2)
        self.assertEqual(tracker.value, 0.0)


if __name__ == "__main__":
    unittest.main()
