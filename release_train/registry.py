"""crates.io registry queries.

Only one question is asked of the registry: which versions of a crate are
already published. A crate the registry has never seen has none.

API endpoint used::

    GET /api/v1/crates/{name}    → crate metadata + versions
"""

from __future__ import annotations

import httpx

from .errors import ReleaseError

DEFAULT_BASE_URL = "https://crates.io"
# crates.io rejects requests without a descriptive user agent
USER_AGENT = "release-train (https://github.com/release-train/release-train)"


class CratesIoRegistry:
    """Read-only crates.io client.

    Args:
        base_url: Registry API root.
        timeout: HTTP request timeout in seconds.
        transport: Optional httpx transport, for tests.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CratesIoRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def published_versions(self, name: str) -> list[str]:
        """Every version of a crate on the registry, yanked ones included.

        Raises:
            ReleaseError: On any response other than 200 or 404.
        """
        url = f"{self._base_url}/api/v1/crates/{name}"
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            raise ReleaseError(f"registry query for {name} failed: {exc}") from exc
        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise ReleaseError(
                f"registry query for {name} failed: HTTP {response.status_code}"
            )
        data = response.json()
        return [v["num"] for v in data.get("versions", []) if "num" in v]

    def is_published(self, name: str, version: str) -> bool:
        return version in self.published_versions(name)
