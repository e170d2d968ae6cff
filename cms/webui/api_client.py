from typing import Any, Dict, List, Sequence

import requests

from cms.config import dlog
from cms.image_host import ImageFile


class ApiError(Exception):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class CmsApiClient:
    """Thin client for the CMS REST API, used by the admin form controllers.

    `session` is anything with a requests-style `request(method, url, **kw)`;
    it defaults to a new requests.Session.
    """

    def __init__(self, base_url: str, *, session: Any = None, token: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token = token

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        dlog("api_client_request", {"method": method, "url": url})
        try:
            resp = self.session.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as e:
            raise ApiError(0, f"Could not reach API: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code >= 400:
            message = resp.text or f"Request failed: {resp.status_code}"
            if isinstance(data, dict):
                parts = [data.get("error") or data.get("message"), data.get("detail")]
                message = ": ".join(str(p) for p in parts if p) or message
            raise ApiError(resp.status_code, message)
        return data

    # ---------- auth ----------
    def login(self, username: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"username": username, "password": password})
        self.token = data.get("token")
        return data

    def logout(self) -> None:
        self._request("POST", "/auth/logout")
        self.token = None

    def verify(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/verify")

    # ---------- uploads ----------
    def upload_images(self, files: Sequence[ImageFile]) -> List[str]:
        if not files:
            return []
        parts = [
            ("images", (f.name or f"upload-{idx + 1}", f.content, f.media_type))
            for idx, f in enumerate(files)
        ]
        data = self._request("POST", "/uploads", files=parts)
        return list(data.get("urls") or [])

    # ---------- events ----------
    def list_events(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/events")

    def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/events", json=payload)

    def update_event(self, event_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/events/{event_id}", json=payload)

    def delete_event(self, event_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/events/{event_id}")

    # ---------- blogs ----------
    def list_blogs(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/blogs")

    def get_blog(self, blog_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/blogs/{blog_id}")

    def create_blog(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/blogs", json=payload)

    def update_blog(self, blog_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/blogs/{blog_id}", json=payload)

    def delete_blog(self, blog_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/blogs/{blog_id}")
