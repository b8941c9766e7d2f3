"""HTTP wrapper utilities for the DevConnect API client."""

from typing import Optional

import requests

from devconnect import config


class RequestFailed(Exception):
    """A remote call did not produce a usable JSON body.

    ``status_code`` is None for transport failures (connection refused,
    timeout, DNS) and the HTTP status otherwise.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_body(resp: requests.Response) -> str:
    """Prefer the server's ``message`` field, fall back to the raw body."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.text[:200] if resp.text else "(empty)"


def _make_request(
    method: str,
    path: str,
    timeout: int,
    base_url: Optional[str],
    token: Optional[str],
    **kwargs,
) -> dict:
    """Generic request with error handling."""
    headers = dict(kwargs.pop("headers", None) or {})
    if token:
        headers["Authorization"] = f"Bearer {token}"
    url = f"{base_url or config.API_URL}{path}"
    try:
        resp = getattr(requests, method)(url, timeout=timeout, headers=headers, **kwargs)
        resp.raise_for_status()
        if not resp.content:
            return {}
        data = resp.json()
    except requests.exceptions.HTTPError:
        raise RequestFailed(
            f"Server returned {resp.status_code}: {_error_body(resp)}",
            status_code=resp.status_code,
        ) from None
    except requests.exceptions.JSONDecodeError:
        body = resp.text[:200] if resp.text else "(empty)"
        raise RequestFailed(
            f"Invalid response ({resp.status_code}): {body}",
            status_code=resp.status_code,
        ) from None
    except requests.RequestException as e:
        raise RequestFailed(str(e)) from e
    # Some endpoints answer with a bare list
    if isinstance(data, list):
        return {"data": data}
    return data


def get(path: str, timeout: int = config.REQUEST_TIMEOUT, base_url: Optional[str] = None,
        token: Optional[str] = None, **kwargs) -> dict:
    return _make_request("get", path, timeout, base_url, token, **kwargs)


def post(path: str, timeout: int = config.REQUEST_TIMEOUT, base_url: Optional[str] = None,
         token: Optional[str] = None, **kwargs) -> dict:
    return _make_request("post", path, timeout, base_url, token, **kwargs)


def put(path: str, timeout: int = config.REQUEST_TIMEOUT, base_url: Optional[str] = None,
        token: Optional[str] = None, **kwargs) -> dict:
    return _make_request("put", path, timeout, base_url, token, **kwargs)


def patch(path: str, timeout: int = config.REQUEST_TIMEOUT, base_url: Optional[str] = None,
          token: Optional[str] = None, **kwargs) -> dict:
    return _make_request("patch", path, timeout, base_url, token, **kwargs)


def delete(path: str, timeout: int = config.REQUEST_TIMEOUT, base_url: Optional[str] = None,
           token: Optional[str] = None, **kwargs) -> dict:
    return _make_request("delete", path, timeout, base_url, token, **kwargs)
