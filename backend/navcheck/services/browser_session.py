from playwright.async_api import async_playwright, Page, Browser, BrowserContext, Playwright
from navcheck.core.config import Settings, settings as default_settings
from navcheck.core.retry import retry_async, RetryConfig, is_transient_network_error
from navcheck.core.logger import logger, log_action
from navcheck.services.navigation_verifier import NavigationVerifier, BeforeClickHook
from navcheck.services.overlay_handlers import overlay_hook
from typing import Optional
import time

class BrowserSession:
    """One browser, one context, one working tab.

    Checks run sequentially against a session; each verification restores the
    tab before the next one starts.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def start(self):
        """Launch Chromium and open the working tab."""
        if self.browser is not None:
            return
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=self.config.headless,
                args=[
                    '--disable-blink-features=AutomationControlled',
                    '--disable-dev-shm-usage',
                    '--no-sandbox',
                ]
            )
        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            if self.playwright:
                await self.playwright.stop()
                self.playwright = None
            raise

        self.context = await self.browser.new_context(
            viewport={'width': self.config.viewport_width, 'height': self.config.viewport_height},
            locale='ja-JP',
            timezone_id='Asia/Tokyo',
        )
        self.context.set_default_timeout(self.config.browser_timeout)
        self.page = await self.context.new_page()

    async def close(self):
        """Close browser instance."""
        if self.context:
            await self.context.close()
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

    async def open(self, url: str, wait_until: str = "domcontentloaded") -> Page:
        """Navigate the working tab, retrying transient network failures."""
        if not self.page:
            await self.start()

        started = time.monotonic()

        @retry_async(RetryConfig(max_retries=2), should_retry=is_transient_network_error)
        async def _goto():
            await self.page.goto(url, wait_until=wait_until, timeout=self.config.browser_timeout)

        try:
            await _goto()
        except Exception as e:
            log_action("open", status="error", url=url, reason=str(e).splitlines()[0])
            raise

        log_action("open", status="success", url=self.page.url,
                   duration_ms=int((time.monotonic() - started) * 1000))
        return self.page

    def verifier(self, before_click: Optional[BeforeClickHook] = None, dismiss_overlays: bool = True) -> NavigationVerifier:
        """Build a verifier bound to this session's tab and context.

        Unless a hook is given, the site's overlays are dismissed before each click.
        """
        if not self.page:
            raise RuntimeError("BrowserSession.start() must be called before verifier()")
        if before_click is None and dismiss_overlays:
            before_click = overlay_hook(self.page)
        return NavigationVerifier(self.page, self.context, before_click=before_click, config=self.config)
