"""HTTP client for the Obsidian Local REST API vault endpoints."""

from __future__ import annotations

from urllib.parse import quote

import requests
import urllib3

from hapds.core.config import Settings
from hapds.core.errors import NotFoundError, TransportError
from hapds.core.logging import get_logger
from hapds.store.base import ACCEPT_HEADERS, PatchSpec, ReadFormat

logger = get_logger(__name__)


class RestStoreClient:
    """Talks to ``/vault/{key}`` with bearer authentication."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        verify_ssl: bool = False,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = verify_ssl
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"
        if not verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RestStoreClient":
        return cls(
            base_url=settings.store_url,
            api_key=settings.store_api_key,
            verify_ssl=settings.store_verify_ssl,
            timeout=settings.store_timeout,
        )

    def get(self, key: str, fmt: ReadFormat = "markdown") -> str:
        resp = self._request("GET", key, headers={"Accept": ACCEPT_HEADERS[fmt]})
        return resp.text

    def put(self, key: str, body: str) -> None:
        self._request("PUT", key, data=body.encode("utf-8"), headers={"Content-Type": "text/markdown"})

    def append(self, key: str, body: str) -> None:
        self._request("POST", key, data=body.encode("utf-8"), headers={"Content-Type": "text/markdown"})

    def patch(self, key: str, body: str, spec: PatchSpec) -> str:
        headers = {"Content-Type": "text/markdown", **spec.to_headers()}
        resp = self._request("PATCH", key, data=body.encode("utf-8"), headers=headers)
        return resp.text

    def delete(self, key: str) -> None:
        self._request("DELETE", key)

    def head(self, key: str) -> bool:
        try:
            self._request("HEAD", key)
        except (NotFoundError, TransportError):
            return False
        return True

    def close(self) -> None:
        self.session.close()

    def _url(self, key: str) -> str:
        return f"{self.base_url}/vault/{quote(key, safe='/')}"

    def _request(self, method: str, key: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.request(method, self._url(key), timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Store request %s %s failed: %s", method, key, exc)
            raise TransportError(key, f"Store unreachable: {exc}") from exc
        if resp.status_code == 404:
            raise NotFoundError(key)
        if not resp.ok:
            detail = _error_detail(resp)
            raise TransportError(key, f"Store returned {resp.status_code}: {detail}", status_code=resp.status_code)
        return resp


def _error_detail(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text
    if isinstance(payload, dict) and "message" in payload:
        return str(payload["message"])
    return str(payload)


__all__ = ["RestStoreClient"]
