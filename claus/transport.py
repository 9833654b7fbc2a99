"""Hand-off of an :class:`~claus.http_request.HttpRequest` to ``requests``.

claus never sends anything itself.  These helpers convert a built
request into ``requests`` objects so callers who already use that
library need no glue of their own; retries, timeouts and streaming
reads stay with the caller.

>>> session = new_session()
>>> response = session.send(prepare(request), timeout=60)  # doctest: +SKIP
>>> turn = decode_response(response.content)  # doctest: +SKIP
"""

from typing import Optional

import requests

from .http_request import HttpRequest


def to_requests(http_request: HttpRequest) -> requests.Request:
    """Convert to an unprepared :class:`requests.Request`."""
    return requests.Request(
        method=http_request.method,
        url=http_request.url,
        headers=dict(http_request.headers),
        data=http_request.body,
    )


def prepare(http_request: HttpRequest, session: Optional[requests.Session] = None) -> requests.PreparedRequest:
    """Prepare the request, through *session* if given so its settings apply."""
    request = to_requests(http_request)
    if session is not None:
        return session.prepare_request(request)
    return request.prepare()


def new_session() -> requests.Session:
    """Return a session that picks up proxy settings from HTTP(S)_PROXY."""
    session = requests.Session()
    session.trust_env = True
    return session


__all__ = ["to_requests", "prepare", "new_session"]
