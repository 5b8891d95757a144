"""Blocking JSON GET shared by all providers."""
import json
import socket
import urllib.error
import urllib.request
from typing import Any, Optional

from zakat_engine.services.config import get_user_agent
from . import (
    AuthenticationError,
    MalformedResponse,
    NetworkError,
    ProviderUnavailable,
    RateLimitError,
)


def fetch_json(url: str, timeout: float, headers: Optional[dict] = None) -> Any:
    """GET `url` and decode its JSON body.

    Raises:
        RateLimitError: HTTP 429
        AuthenticationError: HTTP 401/403
        ProviderUnavailable: any other non-2xx status
        NetworkError: connection failure or timeout
        MalformedResponse: body is not valid JSON
    """
    request_headers = {
        'User-Agent': get_user_agent(),
        'Accept': 'application/json',
    }
    if headers:
        request_headers.update(headers)

    try:
        req = urllib.request.Request(url, headers=request_headers)
        with urllib.request.urlopen(req, timeout=timeout) as response:
            body = response.read()
    except urllib.error.HTTPError as e:
        if e.code == 429:
            raise RateLimitError("Rate limit exceeded")
        if e.code in (401, 403):
            raise AuthenticationError(f"Authentication failed: HTTP {e.code}")
        raise ProviderUnavailable(f"HTTP error: {e.code}")
    except urllib.error.URLError as e:
        raise NetworkError(f"Network error: {e.reason}")
    except (socket.timeout, TimeoutError):
        raise NetworkError(f"Timed out after {timeout}s")

    try:
        return json.loads(body.decode('utf-8'))
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise MalformedResponse("Invalid JSON response")
