import logging

import requests

from .errors import ConnectionFailed

logger = logging.getLogger(__name__)


def send(http, method: str, url: str, headers: dict, data: bytes = None,
         timeout: float = None, verify: bool = True, stream: bool = False) -> requests.Response:
    """Send one request through ``http`` (a requests.Session or the requests module)."""
    logger.debug("%s %s", method, url)
    try:
        resp = http.request(method, url, headers=headers, data=data,
                            timeout=timeout, verify=verify, stream=stream)
    except (requests.ConnectionError, requests.Timeout) as e:
        raise ConnectionFailed(f"{method} {url} failed: {e}") from e
    logger.debug("%s %s -> %s", method, url, resp.status_code)
    return resp
