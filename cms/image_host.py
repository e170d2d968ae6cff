import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import requests

from cms.config import Settings, dlog
from cms.errors import ConfigError, UploadError


INVALID_RESPONSE = "invalid provider response"

# The hosted API sits behind a bot challenge that rejects default client agents.
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36"
)


@dataclass(frozen=True)
class ImageFile:
    content: bytes
    media_type: str = "application/octet-stream"
    name: str | None = None


def _error_message(data: Any, fallback: str) -> str:
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        if data.get("message"):
            return str(data["message"])
    return fallback or "Image upload failed"


class ImageHostClient:
    """Uploads image files to a third-party host and returns public URLs.

    Subclasses implement `_post` and `_extract_url`. One attempt per file,
    no retry.
    """

    provider = "unknown"

    def __init__(self, *, api_key: str, max_bytes: int) -> None:
        self._api_key = api_key
        self.max_bytes = max_bytes

    def _post(self, file: ImageFile, title: str) -> requests.Response:
        raise NotImplementedError

    def _extract_url(self, data: Dict[str, Any]) -> str | None:
        raise NotImplementedError

    def upload(self, file: ImageFile, title: str = "upload") -> str:
        if not file.content:
            raise UploadError("Invalid image data")
        if len(file.content) > self.max_bytes:
            raise UploadError(f"File '{file.name or title}' exceeds the {self.max_bytes} byte upload limit")

        name = file.name or title
        dlog(
            "image_upload_request",
            {"provider": self.provider, "name": name, "media_type": file.media_type, "size": len(file.content)},
        )
        try:
            resp = self._post(file, name)
        except requests.RequestException as e:
            raise UploadError(f"Could not reach image host: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400 or not isinstance(data, dict) or data.get("success") is False:
            dlog(
                "image_upload_failed",
                {"provider": self.provider, "status": resp.status_code, "body": (resp.text or "")[:500]},
            )
            if resp.status_code >= 400:
                raise UploadError(_error_message(data, resp.text), status=resp.status_code)
            if not isinstance(data, dict):
                raise UploadError(INVALID_RESPONSE, status=resp.status_code)
            raise UploadError(_error_message(data, "Image upload failed"), status=resp.status_code)

        url = self._extract_url(data)
        if not isinstance(url, str) or not url:
            raise UploadError(INVALID_RESPONSE, status=resp.status_code)
        dlog("image_upload_response", {"provider": self.provider, "url": url})
        return url

    def upload_many(self, files: Sequence[ImageFile], title: str = "upload") -> List[str]:
        """Upload sequentially; the first failure aborts the whole batch."""
        urls: List[str] = []
        for idx, file in enumerate(files):
            urls.append(self.upload(file, file.name or f"{title}-{idx + 1}"))
        return urls


class ImgHippoClient(ImageHostClient):
    provider = "imghippo"
    url = "https://api.imghippo.com/v1/upload"

    def _post(self, file: ImageFile, title: str) -> requests.Response:
        return requests.post(
            self.url,
            data={"api_key": self._api_key, "title": title},
            files={"file": (title, file.content, file.media_type)},
            headers={"User-Agent": BROWSER_USER_AGENT},
        )

    def _extract_url(self, data: Dict[str, Any]) -> str | None:
        if not data.get("success"):
            return None
        inner = data.get("data") if isinstance(data.get("data"), dict) else {}
        return data.get("direct_url") or data.get("url") or inner.get("url")


class ImgBBClient(ImageHostClient):
    provider = "imgbb"
    url = "https://api.imgbb.com/1/upload"

    def _post(self, file: ImageFile, title: str) -> requests.Response:
        payload = base64.b64encode(file.content).decode("ascii")
        return requests.post(
            self.url,
            params={"key": self._api_key},
            data={"image": payload, "name": title},
        )

    def _extract_url(self, data: Dict[str, Any]) -> str | None:
        inner = data.get("data")
        if not isinstance(inner, dict):
            return None
        return inner.get("url")


PROVIDERS = {
    ImgHippoClient.provider: ImgHippoClient,
    ImgBBClient.provider: ImgBBClient,
}


def build_image_host(settings: Settings) -> ImageHostClient:
    cls = PROVIDERS.get(settings.image_host)
    if cls is None:
        raise ConfigError(f"Unknown IMAGE_HOST '{settings.image_host}'; expected one of: {', '.join(sorted(PROVIDERS))}")
    if not settings.image_host_api_key:
        dlog("image_host_warning", "No IMAGE_HOST_API_KEY set; uploads will be rejected by the provider.")
    return cls(api_key=settings.image_host_api_key, max_bytes=settings.max_upload_bytes)
