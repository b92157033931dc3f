"""Overlay and ad handling for turkish.jp pages."""

from playwright.async_api import Page, TimeoutError as PlaywrightTimeout, Error as PlaywrightError
from navcheck.core.logger import logger
import asyncio

# The ad widget renders <x-t data-ttr="ep"> with its own backdrop; removing
# both keeps it from swallowing clicks meant for the page underneath.
AUTO_DISMISS_SCRIPT = """
(() => {
    const kill = () => {
        document.querySelectorAll('[data-ttr="ep"]').forEach((el) => el.remove());
        document.querySelectorAll('[data-ttr="backdrop"]').forEach((el) => el.remove());
    };
    kill();
    new MutationObserver(kill).observe(document.documentElement, { childList: true, subtree: true });
    setInterval(kill, 300);
})();
"""

class OverlayHandler:
    """Dismisses the overlays that sit on top of links on the target site."""

    QUICK_SEARCH_OVERLAY = "#spc__overlay.is-visible"

    AD_CONTAINER = '[data-ttr="ep"]'

    AD_DISMISS_SELECTORS = [
        "[data-ttr-dismiss]",
        '[data-ttr="dismiss"]',
        '[aria-label="このお知らせを消す"]',
    ]

    @staticmethod
    async def install_auto_dismiss(page: Page):
        """Strip the ad popup as soon as it is inserted. Call before page.goto()."""
        await page.add_init_script(AUTO_DISMISS_SCRIPT)

    @staticmethod
    async def dismiss_quick_search_overlay(page: Page) -> bool:
        """
        Close the quick-search overlay (#spc__overlay) if it is showing.

        The overlay covers the whole viewport once the departure select is
        changed, so underlying links get pointer-intercepted until it closes.
        """
        overlay = page.locator(OverlayHandler.QUICK_SEARCH_OVERLAY)
        if await overlay.count() == 0:
            return False
        try:
            await overlay.click(force=True, timeout=3000)
            await overlay.wait_for(state="hidden", timeout=5000)
        except PlaywrightError as e:
            logger.debug(f"Quick-search overlay did not close cleanly: {e}")
        return True

    @staticmethod
    async def dismiss_advertisements(page: Page) -> bool:
        """
        Close the ad popup by its dismiss button, falling back to Escape.

        Returns True when the popup was present.
        """
        container = page.locator(OverlayHandler.AD_CONTAINER).first
        if await container.count() == 0:
            return False

        for selector in OverlayHandler.AD_DISMISS_SELECTORS:
            button = page.locator(selector).first
            try:
                if await button.count() == 0:
                    continue
                await button.wait_for(state="visible", timeout=3000)
                try:
                    await button.click(timeout=3000)
                except PlaywrightError:
                    await button.click(force=True, timeout=3000)
                await asyncio.sleep(0.5)  # fade-out animation
                if await container.count() == 0:
                    logger.debug(f"Closed ad popup with selector: {selector}")
                    return True
            except PlaywrightTimeout:
                continue

        await page.keyboard.press("Escape")
        logger.debug("Ad popup still present after dismiss buttons, pressed Escape")
        return True

def overlay_hook(page: Page):
    """Build a before-click hook that clears both overlay kinds."""
    async def _dismiss():
        try:
            await OverlayHandler.dismiss_quick_search_overlay(page)
            await OverlayHandler.dismiss_advertisements(page)
        except PlaywrightError as e:
            logger.debug(f"Overlay dismissal skipped: {e}")
    return _dismiss
