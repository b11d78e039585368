from __future__ import annotations


class CitationRelationError(RuntimeError):
    """Terminal failure of a citation relation lookup."""


class ConnectivityError(CitationRelationError):
    """The citation index host could not be resolved or connected to."""


class ServiceError(CitationRelationError):
    """The citation index was reachable but the request or its response failed."""


class DoiFetchError(RuntimeError):
    def __init__(self, doi: str, reason: str) -> None:
        super().__init__(f"Could not fetch DOI {doi}: {reason}")
        self.doi = doi
        self.reason = reason
