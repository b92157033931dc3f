"""
Live checks against the production turkish.jp / turkish.co.jp pages.

Deselected by default; run with `pytest -m live`. Failures here mean either
a real broken link or a markup change on the site, and the result message
says which URL was expected and which one the browser reached.
"""

import re
import pytest
from playwright.async_api import expect
from navcheck.core.config import settings
from navcheck.models.navigation import VerifyOptions
from navcheck.services.image_checks import check_image_aspect_ratios, check_images_loaded
from navcheck.services.overlay_handlers import OverlayHandler
from navcheck.services.scroll_checks import disable_smooth_scroll, verify_anchor_scroll
from navcheck.services.site_locators import (
    departure_select, find_link_by_text, find_visible_anchor_link, link_by_href, sidebar,
)

pytestmark = [pytest.mark.live, pytest.mark.asyncio]

SIDEBAR_LINKS = [
    ("トルコツアー一覧", "https://turkish.jp/tour/"),
    ("ビジネスクラス", "https://turkish.co.jp/b-special/"),
    ("チェックしたツアー", "https://turkish.jp/history/"),
    ("お気に入り", "https://turkish.jp/favorite/"),
]

LP_ANCHORS = [
    ("人気ランキングTOP３", "#ranking", "#ranking", None),
    ("ご旅行までの流れ", "#step3", "section.step3", None),
    ("ターキッシュのこだわり10ポイント", "#point", "section.point", 420),
    ("旅のサポート", "#support", "#support", None),
    ("よくあるご質問", "#faq", "#faq", None),
    ("トップへ", "#top", None, None),
]

DEPARTURES = ["羽田 発", "成田 発", "関空 発", "名古屋 発", "福岡 発"]

async def test_lp_ranking_card_buttons_follow_href(session):
    """Each ranking card's pamphlet and detail buttons land on their href."""
    page = await session.open(settings.lp_url)
    verifier = session.verifier()

    cards = page.locator(".ranking-tour-item")
    count = await cards.count()
    assert count > 0, "Expected at least one ranking card"

    failures = []
    for i in range(count):
        card = cards.nth(i)
        for kind in ("pamphlet", "detail"):
            result = await verifier.verify(
                card.locator(f"a.ranking-button.{kind}"),
                options=VerifyOptions(label=f"card {i + 1} / {kind}", restore_url=settings.lp_url),
            )
            if not result.passed:
                failures.append(result.describe())

    assert not failures, "\n".join(failures)

@pytest.mark.parametrize("name, href", SIDEBAR_LINKS)
async def test_web_sidebar_links(session, name, href):
    page = await session.open(settings.web_url)
    verifier = session.verifier()

    result = await verifier.verify(link_by_href(sidebar(page), href), options=VerifyOptions(label=name))

    result.assert_passed()

async def test_web_ranking_cards_after_selecting_departure(session):
    """Select 羽田 発, then check every ranking card's detail link."""
    await OverlayHandler.install_auto_dismiss(session.page)
    page = await session.open(settings.web_url)
    verifier = session.verifier()

    await departure_select(page).select_option(label="羽田 発")
    await OverlayHandler.dismiss_quick_search_overlay(page)

    cards = page.locator("a.lp19__card")
    count = await cards.count()
    assert count > 0, "Expected ranking cards after choosing a departure"

    failures = []
    for i in range(count):
        result = await verifier.verify(
            cards.nth(i),
            options=VerifyOptions(label=f"羽田発 / card {i + 1}", timeout_ms=20000),
        )
        if not result.passed:
            failures.append(result.describe())

    assert not failures, "\n".join(failures)

@pytest.mark.parametrize("label", DEPARTURES)
async def test_departure_select_updates_quick_search(session, label):
    page = await session.open(settings.web_url)

    await departure_select(page).select_option(label=label)

    shown = re.sub(r"\s+", "", label).replace("関空", "関西")
    quick_search = page.locator("#spc")
    await expect(quick_search).to_contain_text(shown, timeout=15000)

async def test_lp_sidebar_anchor_scroll(session):
    page = await session.open(settings.lp_url, wait_until="networkidle")
    await disable_smooth_scroll(page)
    await page.mouse.wheel(0, 900)

    failures = []
    for name, href, target, max_top in LP_ANCHORS:
        link = await find_visible_anchor_link(page, href)
        result = await verify_anchor_scroll(
            page, link, page.locator(target) if target else None, label=name, max_top=max_top
        )
        if not result.passed:
            failures.append(result.describe())

    assert not failures, "\n".join(failures)

async def test_sidebar_full_course_search_opens_overlay(session):
    page = await session.open(settings.web_url)

    button = await find_link_by_text(sidebar(page), re.compile(r"全コース[\s\S]*かんたん検索"))
    assert button is not None, "Sidebar quick-search button not found"
    await button.click()

    overlay = page.locator("#spc__overlay")
    await expect(overlay).to_have_class(re.compile("is-visible"), timeout=15000)
    await expect(overlay).to_be_visible(timeout=15000)

async def test_web_top_images_load(session):
    page = await session.open(settings.web_url)

    result = await check_images_loaded(page)

    result.assert_passed()

async def test_web_top_images_keep_aspect_ratio(session):
    page = await session.open(settings.web_url)

    result = await check_image_aspect_ratios(page)

    result.assert_passed()
