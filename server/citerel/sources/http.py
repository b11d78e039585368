from __future__ import annotations

import json
import time

import requests


def backoff_sleep(attempt: int) -> None:
    # basic exponential backoff with cap
    time.sleep(min(8.0, 0.5 * (2**attempt)))


def read_json_utf8(resp: requests.Response):
    """Decode the body as UTF-8 regardless of the declared charset."""
    return json.loads(resp.content.decode("utf-8"))
