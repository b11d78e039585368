from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import requests

from server.citerel.config import DEFAULT_OPENCITATIONS_URL
from server.citerel.errors import ConnectivityError, ServiceError
from server.citerel.sources.http import read_json_utf8
from server.citerel.types import Direction

logger = logging.getLogger(__name__)

RELATION_SEPARATOR = "; "

NO_CONNECTION_MESSAGE = "No internet connection! Please try again."
SERVICE_FAILURE_MESSAGE = "Couldn't connect to opencitations.net! Please try again."


def split_relation_field(value: object) -> list[str]:
    if not isinstance(value, str) or not value.strip():
        return []
    return value.split(RELATION_SEPARATOR)


@dataclass
class OpenCitationsClient:
    """Client for the OpenCitations metadata index.

    ``GET <base_url><doi>`` answers with a JSON array. When the DOI is known the
    first element is an object whose ``reference`` and ``citation`` fields hold
    ``"; "``-separated DOI lists.
    """

    base_url: str = DEFAULT_OPENCITATIONS_URL
    token: str = ""
    user_agent: str = "citerel/0.1"
    timeout_seconds: float = 20.0
    _session_local: threading.local = field(default_factory=threading.local, init=False, repr=False)

    def _client(self) -> requests.Session:
        session = getattr(self._session_local, "session", None)
        if session is None:
            session = requests.Session()
            self._session_local.session = session
        return session

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        if self.token:
            headers["Authorization"] = self.token
        return headers

    def get_metadata(self, doi: str) -> list:
        url = self.base_url + doi
        logger.debug("Search: %s", url)
        try:
            resp = self._client().get(url, headers=self._headers(), timeout=self.timeout_seconds)
            resp.raise_for_status()
            payload = read_json_utf8(resp)
        except (requests.exceptions.SSLError, requests.exceptions.ProxyError) as e:
            # subclasses of ConnectionError, but the host was reached
            raise ServiceError(SERVICE_FAILURE_MESSAGE) from e
        except requests.ConnectionError as e:
            raise ConnectivityError(NO_CONNECTION_MESSAGE) from e
        except (requests.RequestException, ValueError) as e:
            raise ServiceError(SERVICE_FAILURE_MESSAGE) from e
        if not isinstance(payload, list):
            raise ServiceError(SERVICE_FAILURE_MESSAGE)
        logger.debug("API answer: %s", payload)
        return payload

    def fetch_relation_list(self, seed_doi: str, direction: Direction) -> list[str]:
        payload = self.get_metadata(seed_doi or "")
        if not payload:
            return []
        first = payload[0]
        if not isinstance(first, dict):
            raise ServiceError(SERVICE_FAILURE_MESSAGE)
        return split_relation_field(first.get(direction.label))
