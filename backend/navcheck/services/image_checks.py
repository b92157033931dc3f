"""Image checks: every visible <img> has loaded and is drawn at its own aspect ratio."""

import re
from dataclasses import dataclass, field
from typing import Dict, List
from playwright.async_api import Page, TimeoutError as PlaywrightTimeout
from navcheck.core.logger import logger, log_action

TRACKING_SRC = re.compile(r"bat\.bing\.com/action/0|google-analytics|googletagmanager|doubleclick", re.IGNORECASE)

# object-fit values that are allowed to crop or letterbox
FITTED = ("cover", "contain", "scale-down")

COLLECT_IMAGES_JS = """
() => Array.from(document.images).map((img) => {
  const rect = img.getBoundingClientRect();
  return {
    src: img.currentSrc || img.getAttribute('src') || '',
    complete: img.complete,
    naturalWidth: img.naturalWidth,
    naturalHeight: img.naturalHeight,
    width: rect.width,
    height: rect.height,
    objectFit: window.getComputedStyle(img).objectFit || 'fill',
  };
})
"""

UNLAZY_IMAGES_JS = """
() => document.querySelectorAll('img').forEach((img) => {
  const real = img.getAttribute('data-lazy-src') || img.getAttribute('data-src') || img.getAttribute('data-original');
  if (real && img.getAttribute('src') !== real) img.setAttribute('src', real);
})
"""

WAIT_FOR_IMAGES_JS = """
(timeoutMs) => Promise.race([
  new Promise((resolve) => setTimeout(resolve, timeoutMs)),
  Promise.all(Array.from(document.images).map((img) => img.complete ? null : new Promise((resolve) => {
    img.addEventListener('load', resolve, { once: true });
    img.addEventListener('error', resolve, { once: true });
  }))),
])
"""


@dataclass
class ImageCheckResult:
    label: str
    total: int
    passed_srcs: List[str] = field(default_factory=list)
    failed_srcs: List[str] = field(default_factory=list)
    skipped: Dict[str, int] = field(default_factory=dict)
    detail: List[str] = field(default_factory=list)

    @property
    def checked(self) -> int:
        return len(self.passed_srcs) + len(self.failed_srcs)

    @property
    def passed(self) -> bool:
        return self.total > 0 and not self.failed_srcs

    def describe(self) -> str:
        verdict = "PASS" if self.passed else "FAIL"
        rate = len(self.passed_srcs) / self.checked * 100 if self.checked else 0.0
        skipped = ", ".join(f"{reason}={count}" for reason, count in sorted(self.skipped.items()) if count)
        text = (f"[{self.label}] {verdict} images={self.total} checked={self.checked} "
                f"ok={len(self.passed_srcs)} failed={len(self.failed_srcs)} ({rate:.2f}%)")
        if skipped:
            text += f" skipped: {skipped}"
        if self.total == 0:
            text += " - no images on the page"
        for line in self.detail or self.failed_srcs:
            text += f"\n  - {line}"
        return text

    def assert_passed(self) -> None:
        assert self.passed, self.describe()


def _skip(result: ImageCheckResult, reason: str):
    result.skipped[reason] = result.skipped.get(reason, 0) + 1


def judge_loaded(images: List[dict], label: str = "images loaded") -> ImageCheckResult:
    """Every rendered, non-tracking image must have finished loading with real pixels."""
    result = ImageCheckResult(label, len(images))
    for img in images:
        src = img["src"].strip()
        if not src:
            _skip(result, "empty_src")
        elif TRACKING_SRC.search(src):
            _skip(result, "tracking")
        elif img["width"] == 0 and img["height"] == 0:
            _skip(result, "not_rendered")
        elif img["width"] == 0 or img["height"] == 0:
            _skip(result, "zero_size")
        elif img["complete"] and img["naturalWidth"] > 0:
            result.passed_srcs.append(src)
        else:
            result.failed_srcs.append(src)
    return result


def judge_aspect_ratios(images: List[dict], tolerance: float = 0.05, label: str = "aspect ratios") -> ImageCheckResult:
    """
    Images drawn with object-fit: fill must keep their natural aspect ratio.

    cover/contain/scale-down are counted as not applicable: for those a box
    that differs from the picture is how they are meant to look.
    """
    result = ImageCheckResult(label, len(images))
    seen = set()
    for img in images:
        src = img["src"]
        if TRACKING_SRC.search(src):
            _skip(result, "tracking")
            continue
        if src.startswith("data:image/svg+xml"):
            _skip(result, "placeholder")
            continue
        if src and src in seen:
            _skip(result, "duplicate")
            continue
        if src:
            seen.add(src)
        if img["width"] == 0 or img["height"] == 0:
            _skip(result, "zero_size")
        elif not (img["complete"] and img["naturalWidth"] > 0):
            _skip(result, "not_loaded")
        elif img["naturalHeight"] == 0:
            _skip(result, "no_natural_size")
        elif img["objectFit"] in FITTED:
            _skip(result, "object_fit")
        else:
            natural = img["naturalWidth"] / img["naturalHeight"]
            drawn = img["width"] / img["height"]
            diff = abs(natural - drawn) / natural
            if diff > tolerance:
                result.failed_srcs.append(src)
                result.detail.append(
                    f"{src} natural={img['naturalWidth']}x{img['naturalHeight']} "
                    f"drawn={img['width']:g}x{img['height']:g} off by {diff * 100:.2f}%"
                )
            else:
                result.passed_srcs.append(src)
    return result


async def collect_images(page: Page) -> List[dict]:
    return await page.evaluate(COLLECT_IMAGES_JS)


async def _wait_for_network_idle(page: Page, timeout_ms: int):
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeout:
        logger.debug(f"Network did not go idle within {timeout_ms}ms: {page.url}")


async def check_images_loaded(page: Page, idle_timeout_ms: int = 10000) -> ImageCheckResult:
    await _wait_for_network_idle(page, idle_timeout_ms)
    result = judge_loaded(await collect_images(page))
    log_action("check_images", status="success" if result.passed else "fail", label=result.label,
               url=page.url, actual=f"{len(result.failed_srcs)} failed of {result.checked}")
    return result


async def check_image_aspect_ratios(page: Page, tolerance: float = 0.05, idle_timeout_ms: int = 10000) -> ImageCheckResult:
    """Swap lazy-load sources in, wait for every image to settle, then compare ratios."""
    await _wait_for_network_idle(page, idle_timeout_ms)
    await page.evaluate(UNLAZY_IMAGES_JS)
    await page.evaluate(WAIT_FOR_IMAGES_JS, idle_timeout_ms)
    await _wait_for_network_idle(page, idle_timeout_ms)
    result = judge_aspect_ratios(await collect_images(page), tolerance)
    log_action("check_aspect_ratios", status="success" if result.passed else "fail", label=result.label,
               url=page.url, actual=f"{len(result.failed_srcs)} distorted of {result.checked}")
    return result
