"""robots.txt policy checks.

The parser is a simplified policy, not full RFC 9309: it tracks the active
``User-agent`` group, records ``Allow``/``Disallow`` path prefixes for groups
matching ``*`` or the exact requesting agent, and denies a URL whose path
starts with any recorded ``Disallow`` prefix.  There is no Allow/Disallow
precedence and no ``*``/``$`` path pattern support.

Every failure (network error, non-2xx, unparsable URL) degrades to *allow*.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urlsplit

import httpx

from serpgist.config import settings
from serpgist.errors import RobotsCheckError


@dataclass
class RobotsPolicy:
    """Path prefixes that apply to one user-agent on one origin."""

    disallow: List[str] = field(default_factory=list)
    allow: List[str] = field(default_factory=list)

    def permits(self, path: str) -> bool:
        path = path or "/"
        for prefix in self.disallow:
            if prefix == "/" or path.startswith(prefix):
                return False
        return True


def _directive(line: str) -> tuple[str, str] | None:
    """Split ``Name: value`` into a lower-cased name and a stripped value."""
    line = line.split("#", 1)[0].strip()
    if ":" not in line:
        return None
    name, _, value = line.partition(":")
    return name.strip().lower(), value.strip()


def parse_robots(text: str, user_agent: str) -> RobotsPolicy:
    """Parse *text* into the :class:`RobotsPolicy` that applies to *user_agent*."""
    policy = RobotsPolicy()
    agent = user_agent.strip().lower()
    current = ""

    for raw_line in text.splitlines():
        parsed = _directive(raw_line)
        if parsed is None:
            continue
        name, value = parsed
        if name == "user-agent":
            current = value.lower()
            continue
        if current != "*" and current != agent:
            continue
        if not value:
            continue
        if name == "disallow":
            policy.disallow.append(value)
        elif name == "allow":
            policy.allow.append(value)

    return policy


class RobotsPolicyChecker:
    """Fetch, cache, and evaluate robots.txt policies.

    Policies are cached per ``(origin, user_agent)`` for the lifetime of the
    checker, which is one pipeline run.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = settings.robots_timeout if timeout is None else timeout
        self._cache: Dict[tuple[str, str], Optional[RobotsPolicy]] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            )
        return self._client

    async def _fetch_policy(self, robots_url: str, user_agent: str) -> Optional[RobotsPolicy]:
        """Return the parsed policy, or ``None`` when robots.txt is unavailable.

        Raises:
            RobotsCheckError: On any network-level failure.
        """
        try:
            response = await self._get_client().get(
                robots_url,
                headers={"User-Agent": user_agent, "Accept": "text/plain"},
            )
        except httpx.HTTPError as exc:
            raise RobotsCheckError(f"{robots_url}: {exc}") from exc

        if not response.is_success:
            print(
                f"[robots] robots.txt not found or not accessible "
                f"({response.status_code}) at {robots_url}"
            )
            return None
        return parse_robots(response.text, user_agent)

    async def is_allowed(self, url: str, user_agent: str) -> bool:
        """Return ``True`` unless robots.txt for *url*'s origin disallows it."""
        try:
            parts = urlsplit(url)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                raise RobotsCheckError(f"not an http(s) URL: {url!r}")
            origin = f"{parts.scheme}://{parts.netloc}"
            key = (origin, user_agent)

            if key not in self._cache:
                robots_url = f"{origin}/robots.txt"
                print(f"[robots] checking {robots_url}")
                self._cache[key] = await self._fetch_policy(robots_url, user_agent)

            policy = self._cache[key]
            if policy is None:
                return True

            path = parts.path or "/"
            if policy.permits(path):
                print(f"[robots] allowed to crawl {path}")
                return True
            print(f"[robots] disallowed by robots.txt: {url}")
            return False
        except Exception as exc:  # noqa: BLE001
            print(f"[robots] error checking robots.txt for {url}: {exc}")
            return True

    async def aclose(self) -> None:
        """Close the HTTP client if this checker created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
