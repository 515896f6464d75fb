"""HTTP adapter for the API: token storage, auth header and error normalization."""

import logging
from pathlib import Path
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class TokenStore:
    """Holds the bearer token, optionally persisted to a file between runs."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._token = None
        if self.path and self.path.exists():
            self._token = self.path.read_text(encoding="utf-8").strip() or None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(token, encoding="utf-8")
            self.path.chmod(0o600)

    def clear(self) -> None:
        self._token = None
        if self.path and self.path.exists():
            self.path.unlink()


class ApiClient:
    def __init__(self, base_url: str = "", tokens: Optional[TokenStore] = None,
                 http: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.tokens = tokens or TokenStore()
        self.http = http or httpx.Client(timeout=timeout)

    def request(self, method: str, path: str, body=None, params=None) -> dict:
        headers = {"Accept": "application/json"}
        token = self.tokens.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        res = self.http.request(method, f"{self.base_url}{path}", json=body, params=params, headers=headers)
        data = self._decode(res)

        if res.is_error:
            if res.status_code == 401:
                self.tokens.clear()
            message = data.get("message") or f"Request failed ({res.status_code})"
            logger.debug("%s %s -> %s %s", method, path, res.status_code, message)
            raise ApiClientError(res.status_code, message, data)
        return data

    @staticmethod
    def _decode(res: httpx.Response) -> dict:
        if not res.content:
            return {}
        try:
            data = res.json()
        except ValueError:
            return {"message": res.text} if res.is_error else {}
        return data if isinstance(data, dict) else {"data": data}

    def get(self, path: str, params=None) -> dict:
        return self.request("GET", path, params=params)

    def post(self, path: str, body=None) -> dict:
        return self.request("POST", path, body=body)

    def patch(self, path: str, body=None) -> dict:
        return self.request("PATCH", path, body=body)

    def delete(self, path: str) -> dict:
        return self.request("DELETE", path)

    def close(self) -> None:
        self.http.close()
