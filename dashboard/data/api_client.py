import os
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

_SECRET_GETTER = None
_TOKEN_GETTER = None


class ApiError(RuntimeError):
    def __init__(self, status_code: int, detail: Any):
        message = detail.get("detail") if isinstance(detail, dict) else detail
        super().__init__(f"API error {status_code}: {message}")
        self.status_code = status_code
        self.detail = detail

    @property
    def redirect(self):
        if isinstance(self.detail, dict):
            return self.detail.get("redirect")
        return None


def _build_session():
    session = requests.Session()
    retry = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET", "PUT", "DELETE"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = _build_session()


def configure(secret_getter, token_getter):
    global _SECRET_GETTER, _TOKEN_GETTER
    _SECRET_GETTER = secret_getter
    _TOKEN_GETTER = token_getter


def _get_secret(path, default=None):
    if _SECRET_GETTER is None:
        return default
    return _SECRET_GETTER(path, default)


def api_base_url():
    return (
        _get_secret(("app", "API_BASE_URL"))
        or _get_secret(("API_BASE_URL",))
        or os.getenv("API_BASE_URL")
        or ""
    )


def is_enabled():
    return bool(api_base_url())


def _decode_error(response):
    try:
        return response.json()
    except ValueError:
        return response.text


def request(
    method: str,
    path: str,
    params: dict | None = None,
    json: dict | None = None,
    files: dict | None = None,
    data: dict | None = None,
    timeout: int = 15,
    auth: bool = True,
    token: str | None = None,
) -> Any:
    base = api_base_url().rstrip("/")
    if not base:
        raise RuntimeError("API_BASE_URL not configured")
    headers = {}
    if auth:
        token = token or (_TOKEN_GETTER() if _TOKEN_GETTER else None)
        if not token:
            raise ApiError(401, {"detail": "Not authenticated"})
        headers["Authorization"] = f"Bearer {token}"
    url = f"{base}{path}"
    response = _SESSION.request(
        method, url, params=params, json=json, files=files, data=data, headers=headers, timeout=timeout
    )
    if not response.ok:
        raise ApiError(response.status_code, _decode_error(response))
    if response.status_code == 204 or not response.content:
        return None
    return response.json()
