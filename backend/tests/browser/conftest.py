"""A tiny fake travel site served through Playwright request routing."""

import base64
from urllib.parse import urlsplit, parse_qsl
import pytest_asyncio

SITE = "https://site.test"

PAGES = {
    "/a/": """
        <html><head><title>Top</title></head><body>
        <a id="same" href="/tour/?x=1#s">ツアー一覧</a>
        <a id="newtab" href="/p_pamphlet/t9sah/" target="_blank">パンフレットはこちら</a>
        <a id="wrongtab" href="/p/1/" onclick="window.open('/p/2/'); return false;">詳細はこちら</a>
        <a id="dead" href="/tour/" onclick="event.preventDefault()">詳しく見る</a>
        <a id="broken" href="/missing/">旧ページ</a>
        <a id="empty" href="">準備中</a>
        <a id="self" href="/a/?tab=2" onclick="event.preventDefault()">このページ</a>
        </body></html>
    """,
    "/overlay/": """
        <html><head><title>Overlay</title></head><body>
        <a id="covered" href="/tour/">トルコツアー一覧</a>
        <div id="spc__overlay" class="is-visible"
             style="position:fixed;top:0;left:0;width:100%;height:100%;z-index:10;background:rgba(0,0,0,.4)"
             onclick="this.classList.remove('is-visible'); this.style.display='none';"></div>
        </body></html>
    """,
    "/tour/": "<html><head><title>トルコツアー一覧</title></head><body>tours</body></html>",
    "/p_pamphlet/t9sah/": "<html><head><title>パンフレット</title></head><body>pdf</body></html>",
    "/p/2/": "<html><head><title>Other</title></head><body>other</body></html>",
    "/images/": """
        <html><head><title>Images</title></head><body>
        <img id="ok" src="/img/tour.png" width="120" height="120">
        <img id="missing" src="/img/missing.png" width="120" height="120">
        <img id="stretched" src="/img/tour.png?v=stretched" width="240" height="60">
        <img id="cover" src="/img/tour.png?v=cover" width="240" height="60" style="object-fit: cover">
        <img id="hidden" src="/img/tour.png?v=hidden" style="display: none">
        <img id="pixel" src="/googletagmanager/pixel.png" width="1" height="1">
        <img id="empty" src="">
        </body></html>
    """,
    "/lp/": """
        <html><head><title>LP</title><style>body { margin: 0; } section { height: 1600px; }</style></head><body>
        <nav id="side_navigation" style="position:fixed;right:0;top:100px">
          <a href="#ranking">人気ランキング</a>
          <a href="#point">こだわり10ポイント</a>
          <a href="#top">トップへ</a>
        </nav>
        <section class="hero">top</section>
        <section id="ranking">ranking</section>
        <section class="point" id="point">point</section>
        <section id="faq">faq</section>
        </body></html>
    """,
}

NOT_FOUND = "<html><head><title>404 Not Found</title></head><body>not found</body></html>"

# 1x1 PNG
PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

async def _handle(route):
    url = urlsplit(route.request.url)
    # The real site tacks a tracking parameter onto tour pages via redirect
    if url.path == "/tour/" and "utm" not in dict(parse_qsl(url.query)):
        query = f"{url.query}&utm=999" if url.query else "utm=999"
        await route.fulfill(status=302, headers={"location": f"{SITE}/tour/?{query}"})
        return
    if url.path == "/img/tour.png":
        await route.fulfill(status=200, content_type="image/png", body=PIXEL_PNG)
        return
    body = PAGES.get(url.path)
    if body is None:
        await route.fulfill(status=404, content_type="text/html", body=NOT_FOUND)
        return
    await route.fulfill(status=200, content_type="text/html; charset=utf-8", body=body)

@pytest_asyncio.fixture
async def site(session):
    """Route site.test through the fake pages and return the session."""
    await session.context.route(f"{SITE}/**", _handle)
    return session
