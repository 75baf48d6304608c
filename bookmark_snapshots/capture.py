"""Screenshot capture through a single headless browser page."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from playwright.async_api import async_playwright

from .config import (
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_SETTLE_MS,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
)

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from playwright.async_api import Browser, Page, Playwright

    # Anything that turns a uri into encoded image bytes.
    Capture = Callable[[str], Awaitable[bytes]]

LOGGER = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """Raised when the browser cannot produce a screenshot."""


class PlaywrightCapture:
    """Capture callable backed by one reused Playwright page.

    Use as an async context manager; calls are expected to be awaited one at a
    time since every capture navigates the same page.
    """

    def __init__(
        self,
        *,
        settle_ms: int = DEFAULT_SETTLE_MS,
        timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        width: int = DEFAULT_VIEWPORT_WIDTH,
        height: int = DEFAULT_VIEWPORT_HEIGHT,
        headless: bool = True,
    ) -> None:
        """Initialise the capture settings.

        Args:
            settle_ms: Wait after navigation before taking the screenshot.
            timeout_ms: Default Playwright timeout for navigation and screenshots.
            width: Viewport width in pixels.
            height: Viewport height in pixels.
            headless: Run the browser without a window.

        """
        self._settle_ms = max(0, settle_ms)
        self._timeout_ms = timeout_ms
        self._viewport = {"width": width, "height": height}
        self._headless = headless
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page: Page | None = None

    async def __aenter__(self) -> PlaywrightCapture:
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self._headless)
            self._page = await self._browser.new_page(viewport=self._viewport)
            self._page.set_default_timeout(self._timeout_ms)
        except BaseException:
            LOGGER.error("Browser start-up failed; shutting Playwright down")  # noqa: TRY400
            await self.__aexit__(None, None, None)
            raise
        LOGGER.debug(
            "Browser ready (viewport %dx%d, settle %dms)",
            self._viewport["width"],
            self._viewport["height"],
            self._settle_ms,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._page is not None:
            await self._page.close()
            self._page = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __call__(self, uri: str) -> bytes:
        """Navigate to ``uri``, let it settle and return PNG bytes."""
        if self._page is None:
            msg = "PlaywrightCapture used outside of its 'async with' block"
            raise CaptureError(msg)
        started = time.perf_counter()
        await self._page.goto(uri)
        await asyncio.sleep(self._settle_ms / 1000)
        image = await self._page.screenshot(type="png")
        LOGGER.debug("Rendered %s in %.0fms", uri, (time.perf_counter() - started) * 1000)
        return image
