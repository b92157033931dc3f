"""Anchor-link scroll checks: click an in-page link and see where the target lands."""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional
from playwright.async_api import Page, Locator, TimeoutError as PlaywrightTimeout
from navcheck.core.config import settings
from navcheck.core.logger import log_action

DISABLE_SMOOTH_SCROLL_CSS = "html { scroll-behavior: auto !important; }"

@dataclass
class ScrollCheckResult:
    passed: bool
    label: str
    scroll_y: int
    target_top: Optional[int] = None
    min_top: int = 0
    max_top: int = 0
    detail: str = ""

    def describe(self) -> str:
        verdict = "PASS" if self.passed else "FAIL"
        text = f"[{self.label}] {verdict} scrollY={self.scroll_y} expectedTop=[{self.min_top},{self.max_top}]"
        if self.target_top is not None:
            text += f" targetTop={self.target_top}"
        if self.detail:
            text += f" - {self.detail}"
        return text

    def assert_passed(self) -> None:
        assert self.passed, self.describe()

async def disable_smooth_scroll(page: Page):
    await page.add_style_tag(content=DISABLE_SMOOTH_SCROLL_CSS)

async def get_top(locator: Locator) -> int:
    return await locator.evaluate("(el) => Math.round(el.getBoundingClientRect().top)")

async def get_scroll_y(page: Page) -> int:
    return round(await page.evaluate("() => window.scrollY"))

def is_near_top(top: int, min_top: int = None, max_top: int = None) -> bool:
    min_top = settings.near_top_min_px if min_top is None else min_top
    max_top = settings.near_top_max_px if max_top is None else max_top
    return min_top <= top <= max_top

async def wait_for_scroll_to_settle(page: Page, timeout_ms: int = None, tolerance_px: int = 3, stable_reads: int = 4) -> bool:
    """
    Poll window.scrollY until it stops moving.

    Lazy-loaded images nudge the page by a few pixels, hence the tolerance.
    Returns False on timeout; the position check that follows decides.
    """
    timeout_ms = timeout_ms or settings.scroll_settle_timeout_ms
    deadline = time.monotonic() + timeout_ms / 1000
    stable = 0
    previous = await get_scroll_y(page)

    while time.monotonic() < deadline:
        await asyncio.sleep(0.12)
        current = await get_scroll_y(page)
        stable = stable + 1 if abs(current - previous) <= tolerance_px else 0
        previous = current
        if stable >= stable_reads:
            return True
    return False

async def verify_anchor_scroll(
    page: Page,
    link: Locator,
    target: Optional[Locator],
    label: str = "",
    min_top: int = None,
    max_top: int = None,
    timeout_ms: int = 15000,
) -> ScrollCheckResult:
    """
    Click an in-page anchor and check that the target ends up near the viewport top.

    With target=None the link is expected to go back to the top of the page
    (scrollY <= 5).
    """
    min_top = settings.near_top_min_px if min_top is None else min_top
    max_top = settings.near_top_max_px if max_top is None else max_top

    await link.click(timeout=timeout_ms)
    await wait_for_scroll_to_settle(page, timeout_ms)
    deadline = time.monotonic() + timeout_ms / 1000

    if target is None:
        scroll_y = await get_scroll_y(page)
        while scroll_y > 5 and time.monotonic() < deadline:
            await asyncio.sleep(0.2)
            scroll_y = await get_scroll_y(page)
        result = ScrollCheckResult(scroll_y <= 5, label, scroll_y, min_top=0, max_top=5)
    else:
        try:
            await target.first.wait_for(state="attached", timeout=timeout_ms)
        except PlaywrightTimeout:
            result = ScrollCheckResult(False, label, await get_scroll_y(page), min_top=min_top, max_top=max_top,
                                       detail="target not found")
        else:
            top = await get_top(target.first)
            while not is_near_top(top, min_top, max_top) and time.monotonic() < deadline:
                await asyncio.sleep(0.2)
                top = await get_top(target.first)
            result = ScrollCheckResult(is_near_top(top, min_top, max_top), label, await get_scroll_y(page),
                                       target_top=top, min_top=min_top, max_top=max_top)

    log_action("verify_scroll", status="success" if result.passed else "fail", label=label,
               actual=result.target_top, url=page.url)
    return result
