"""Browser page capability and request identity.

The crawl core only sequences calls on a page object; it never depends on a
concrete browser.  :class:`BrowserSession` is the capability the core
consumes, and :class:`PlaywrightBrowserSession` implements it with a
headless Chromium via Playwright.  Pages returned by a session expose the
Playwright ``Page`` surface the core uses: ``goto``, ``content``,
``evaluate``, ``wait_for_event``, ``set_default_timeout`` and
``set_default_navigation_timeout``.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Protocol, TypeVar

from serpgist.errors import LaunchError, PageCreationError

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], seconds: float, label: str) -> T:
    """Await *awaitable*, raising ``TimeoutError("timeout:<label>")`` after *seconds*."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise TimeoutError(f"timeout:{label}") from exc


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.6 Safari/605.1.15 (+https://example.com/bot; contact@example.com)",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:128.0) Gecko/20100101 "
    "Firefox/128.0 (+https://example.com/bot; contact@example.com)",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/127.0.6533.88 Safari/537.36 (+https://example.com/bot; contact@example.com)",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/127.0.6533.88 Safari/537.36 (+https://example.com/bot; contact@example.com)",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/127.0.6533.88 Safari/537.36 Edg/127.0.2651.74 (+https://example.com/bot; contact@example.com)",
)

LOCALES: tuple[str, ...] = ("en-US", "en-GB", "en-CA")

TIMEZONES: tuple[str, ...] = (
    "America/New_York",
    "America/Los_Angeles",
    "Europe/London",
    "America/Toronto",
)


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int
    device_scale_factor: float = 1


VIEWPORTS: tuple[Viewport, ...] = (
    Viewport(1366, 768, 1),
    Viewport(1440, 900, 2),
    Viewport(1920, 1080, 1),
)


@dataclass(frozen=True)
class BrowserIdentity:
    """The browser fingerprint presented for one request."""

    user_agent: str
    locale: str = "en-US"
    timezone: str = "America/New_York"
    viewport: Viewport = VIEWPORTS[0]


def pick_identity(rng: Optional[random.Random] = None) -> BrowserIdentity:
    """Draw a random identity from the rotation tables."""
    rng = rng or random.Random()
    return BrowserIdentity(
        user_agent=rng.choice(USER_AGENTS),
        locale=rng.choice(LOCALES),
        timezone=rng.choice(TIMEZONES),
        viewport=rng.choice(VIEWPORTS),
    )


def accept_language(locale: str) -> str:
    base = locale.split("-")[0]
    return f"{locale},{base};q=0.9"


def build_headers(identity: BrowserIdentity) -> dict[str, str]:
    """Extra navigation headers that mimic a regular desktop browser."""
    return {
        "Accept-Language": accept_language(identity.locale),
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,image/apng,*/*;q=0.8"
        ),
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Upgrade-Insecure-Requests": "1",
        "DNT": "1",
    }


STEALTH_SCRIPT = """
(() => {
  try {
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
    Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
  } catch (e) {}
})();
"""


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------

class BrowserSession(Protocol):
    """A launched browser shared read-only by every worker of one request."""

    async def new_page(self, identity: BrowserIdentity) -> Any:
        """Open a page presenting *identity*.  Raises :class:`PageCreationError`."""

    async def apply_stealth(self, page: Any, identity: BrowserIdentity) -> None:
        """Set navigation headers and inject pre-navigation overrides."""

    async def close_page(self, page: Any) -> None:
        """Release *page* and anything opened alongside it."""

    async def close(self) -> None:
        """Release the browser."""


class PlaywrightBrowserSession:
    """:class:`BrowserSession` backed by a headless Playwright Chromium.

    Each page gets its own browser context so that locale, timezone and
    viewport can be set per page; closing the page closes its context.
    """

    def __init__(self, playwright: Any, browser: Any) -> None:
        self._playwright = playwright
        self._browser = browser

    @classmethod
    async def launch(cls, headless: bool = True) -> "PlaywrightBrowserSession":
        """Start Playwright and launch Chromium.

        Playwright is imported lazily so the rest of the package can be
        imported (and tested) without a browser installed.

        Raises:
            LaunchError: If Playwright or the browser cannot be started.
        """
        try:
            from playwright.async_api import async_playwright  # noqa: PLC0415

            playwright = await async_playwright().start()
        except Exception as exc:  # noqa: BLE001
            raise LaunchError(str(exc)) from exc

        try:
            browser = await playwright.chromium.launch(headless=headless)
        except Exception as exc:  # noqa: BLE001
            await playwright.stop()
            raise LaunchError(str(exc)) from exc
        return cls(playwright, browser)

    async def new_page(self, identity: BrowserIdentity) -> Any:
        try:
            context = await self._browser.new_context(
                user_agent=identity.user_agent,
                locale=identity.locale,
                timezone_id=identity.timezone,
                viewport={
                    "width": identity.viewport.width,
                    "height": identity.viewport.height,
                },
                device_scale_factor=identity.viewport.device_scale_factor,
            )
        except Exception as exc:  # noqa: BLE001
            raise PageCreationError(str(exc)) from exc
        try:
            return await context.new_page()
        except Exception as exc:  # noqa: BLE001
            await context.close()
            raise PageCreationError(str(exc)) from exc

    async def apply_stealth(self, page: Any, identity: BrowserIdentity) -> None:
        await page.set_extra_http_headers(build_headers(identity))
        await page.add_init_script(STEALTH_SCRIPT)

    async def close_page(self, page: Any) -> None:
        await page.context.close()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
