from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from urllib.parse import quote

import requests
from requests import RequestException

from logosdeck.config import Settings
from logosdeck.errors import ImageUnavailable
from logosdeck.images.cache import ImageCache
from logosdeck.images.payload import ImagePayload, payload_from_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IllustrationRequest:
    prompt: str
    style_suffix: str
    width: int
    height: int

    @property
    def seed(self) -> int:
        # Same prompt, same picture: keeps re-exports stable.
        digest = hashlib.sha1(self.prompt.encode("utf-8")).hexdigest()  # nosec
        return int(digest[:8], 16) % 10000


def build_illustration_url(request: IllustrationRequest, base_url: str) -> str:
    prompt = quote(f"{request.prompt}{request.style_suffix}", safe="")
    return (
        f"{base_url.rstrip('/')}/prompt/{prompt}"
        f"?width={request.width}&height={request.height}&nologo=true&seed={request.seed}"
    )


@dataclass(frozen=True)
class IllustrationProvider:
    """Client for a prompt-to-image service that serves images by URL."""

    base_url: str
    style_suffix: str = ""
    cache: ImageCache | None = None
    timeout: float = 30.0
    retries: int = 3

    @classmethod
    def from_settings(cls, cfg: Settings) -> "IllustrationProvider":
        return cls(
            base_url=cfg.illustration_base_url,
            style_suffix=cfg.illustration_style_suffix,
            cache=ImageCache(base_dir=cfg.cache_dir),
            timeout=cfg.request_timeout,
        )

    def request_for(self, prompt: str, *, width: int, height: int) -> IllustrationRequest:
        return IllustrationRequest(
            prompt=(prompt or "").strip() or "illustration",
            style_suffix=self.style_suffix,
            width=width,
            height=height,
        )

    def url_for(self, prompt: str, *, width: int = 800, height: int = 600) -> str:
        return build_illustration_url(self.request_for(prompt, width=width, height=height), self.base_url)

    def download(self, url: str) -> bytes:
        if self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                logger.debug("cache hit url=%s", url[:120])
                return cached

        last_err: Exception | None = None
        for attempt in range(self.retries):
            try:
                r = requests.get(
                    url,
                    timeout=self.timeout,
                    headers={"User-Agent": "logosdeck/1.0"},
                )
                r.raise_for_status()
                data = r.content
                break
            except RequestException as e:
                last_err = e
                logger.debug("download attempt=%d failed url=%s err=%s", attempt + 1, url[:120], e)
                time.sleep(0.4 * (attempt + 1))
        else:
            raise ImageUnavailable(f"Download failed: {last_err}") from last_err

        if self.cache is not None:
            self.cache.set(url, data)
        return data

    def fetch_url(self, url: str) -> ImagePayload:
        data = self.download(url)
        logger.debug("ok url=%s bytes=%d", url[:120], len(data))
        return payload_from_bytes(data, source="generated", reference=url)

    def fetch(self, prompt: str, *, width: int = 800, height: int = 600) -> ImagePayload:
        return self.fetch_url(self.url_for(prompt, width=width, height=height))
