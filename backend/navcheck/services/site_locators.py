"""Element lookup helpers for turkish.jp / turkish.co.jp pages."""

import asyncio
import re
from typing import Optional, Pattern, Union
from playwright.async_api import Page, Locator

SIDEBAR = "#side_navigation"

def sidebar(page: Page) -> Locator:
    """Right-hand fixed navigation (desktop layout)."""
    return page.locator(SIDEBAR)

def departure_select(page: Page) -> Locator:
    # The departure <select> is the one offering "羽田 発"
    option = page.locator("option", has_text=re.compile(r"羽田\s*発"))
    return page.locator("select").filter(has=option).first

async def find_link_by_text(container: Union[Page, Locator], text: Union[str, Pattern]) -> Optional[Locator]:
    links = container.locator("a[href]").filter(has_text=text)
    return links.first if await links.count() > 0 else None

def link_by_href(container: Union[Page, Locator], href: str) -> Locator:
    return container.locator(f'a[href="{href}"]').first

async def find_visible_anchor_link(page: Page, href: str, attempts: int = 8, step_px: int = 700) -> Locator:
    """
    Find a visible link with the given href, scrolling down until one shows up.

    The landing page only reveals its sidebar after some scrolling, so the
    link may not be visible on first paint.

    Raises:
        LookupError: if no visible link appeared after all attempts
    """
    for _ in range(attempts):
        link = page.locator(f'a[href="{href}"]:visible').first
        if await link.count() > 0:
            return link
        await page.mouse.wheel(0, step_px)
        await asyncio.sleep(0.15)
    raise LookupError(f"No visible link for href={href} after scrolling {attempts} times")
