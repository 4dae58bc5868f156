from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Protocol

from playwright.sync_api import Browser, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from webvisionsheet.models.config_models import BrowserConfig

"""Snapshot provider: full-page screenshots with Playwright (Chromium).

One browser instance is launched lazily and reused for every capture until
the owner calls ``release()``. Each capture runs in its own browser context
(isolated cookies / storage) and always closes its page and context, also on
failure. Only one page is open at a time.

Navigation waits for the ``load`` event within ``navigation_timeout_ms``;
afterwards a bounded wait for network idle is attempted. Not reaching network
idle is logged and the screenshot is taken anyway.
"""

__all__ = [
    "SnapshotError",
    "NavigationError",
    "CaptureTimeout",
    "SnapshotProvider",
    "PlaywrightSnapshotProvider",
    "normalize_url",
]

logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    """Base exception for snapshot failures."""


class NavigationError(SnapshotError):
    """The page could not be opened or rendered."""


class CaptureTimeout(SnapshotError):
    """Navigation or screenshot exceeded its time budget."""


class SnapshotProvider(Protocol):
    def ensure_ready(self) -> Any:
        ...

    def capture(self, url: str, output_path: Path) -> Path:
        ...

    def release(self) -> None:
        ...


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when the URL carries no http(s) scheme."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


class PlaywrightSnapshotProvider:
    """Long-lived Chromium instance producing full-page PNG snapshots."""

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page_lock = threading.Lock()

    def ensure_ready(self) -> Browser:
        """Return a connected browser, launching one if needed (idempotent)."""
        if self._browser is not None and self._browser.is_connected():
            return self._browser
        if self._playwright is None:
            self._playwright = sync_playwright().start()
        logger.info("launching chromium (headless=%s)", self.config.headless)
        try:
            self._browser = self._playwright.chromium.launch(headless=self.config.headless)
        except PlaywrightError as e:
            raise SnapshotError(f"browser launch failed: {e}") from e
        return self._browser

    def capture(self, url: str, output_path: Path) -> Path:
        """Write a full-page screenshot of ``url`` to ``output_path``.

        Raises:
            CaptureTimeout: navigation or screenshot timed out
            NavigationError: any other navigation / rendering failure
        """
        target = normalize_url(url)
        browser = self.ensure_ready()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with self._page_lock:
            context = None
            page = None
            try:
                context = browser.new_context(
                    viewport={
                        "width": self.config.viewport_width,
                        "height": self.config.viewport_height,
                    }
                )
                page = context.new_page()
                logger.debug("navigating to %s", target)
                try:
                    response = page.goto(
                        target, wait_until="load", timeout=self.config.navigation_timeout_ms
                    )
                except PlaywrightTimeoutError as e:
                    raise CaptureTimeout(
                        f"navigation to {target} timed out after {self.config.navigation_timeout_ms} ms"
                    ) from e
                except PlaywrightError as e:
                    raise NavigationError(f"navigation to {target} failed: {e}") from e

                if response is not None and response.status >= 400:
                    logger.warning("%s answered HTTP %d; capturing anyway", target, response.status)

                if self.config.network_idle_timeout_ms > 0:
                    try:
                        page.wait_for_load_state(
                            "networkidle", timeout=self.config.network_idle_timeout_ms
                        )
                    except PlaywrightTimeoutError:
                        logger.warning(
                            "network idle not reached for %s within %d ms; capturing anyway",
                            target,
                            self.config.network_idle_timeout_ms,
                        )

                try:
                    page.screenshot(path=str(output_path), full_page=True)
                except PlaywrightTimeoutError as e:
                    raise CaptureTimeout(f"screenshot of {target} timed out") from e
                except PlaywrightError as e:
                    raise NavigationError(f"screenshot of {target} failed: {e}") from e
            except SnapshotError:
                raise
            except PlaywrightError as e:
                # new_context / new_page failures (browser crashed, disconnected)
                raise NavigationError(f"could not open a page for {target}: {e}") from e
            finally:
                if page is not None:
                    _close_quietly(page, "page")
                if context is not None:
                    _close_quietly(context, "context")

        logger.debug("screenshot saved to %s", output_path)
        return output_path

    def release(self) -> None:
        """Close the browser and stop the Playwright driver (idempotent)."""
        if self._browser is not None:
            logger.info("closing chromium")
            _close_quietly(self._browser, "browser")
            self._browser = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except PlaywrightError as e:  # pragma: no cover
                logger.debug("playwright stop failed: %s", e)
            self._playwright = None

    def __enter__(self) -> PlaywrightSnapshotProvider:
        self.ensure_ready()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


def _close_quietly(resource: Any, label: str) -> None:
    try:
        resource.close()
    except PlaywrightError as e:
        logger.debug("closing %s failed: %s", label, e)
