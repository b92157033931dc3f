"""Click a link and check that the browser ends up where the link says it goes."""

import asyncio
import re
import time
from typing import Awaitable, Callable, Optional

from playwright.async_api import Page, BrowserContext, Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from navcheck.core.config import Settings, settings as default_settings
from navcheck.core.logger import logger, log_action
from navcheck.models.navigation import (
    ClickTarget,
    CleanupResult,
    FailureReason,
    NavigationOutcome,
    NewTab,
    NoNavigation,
    SameTab,
    VerificationResult,
    VerifyOptions,
)
from navcheck.services.url_policies import ComparisonPolicy, DEFAULT_POLICY, resolve_reference

NOT_FOUND_TITLE = re.compile(r"404|not found", re.IGNORECASE)

BeforeClickHook = Callable[[], Awaitable[None]]


class NavigationVerifier:
    """Verifies link navigation against one browser session.

    The session (page + context) is passed in explicitly and the verifier keeps
    no other state, so separate sessions can each own a verifier.
    """

    def __init__(
        self,
        page: Page,
        context: BrowserContext,
        before_click: Optional[BeforeClickHook] = None,
        config: Optional[Settings] = None,
    ):
        self.page = page
        self.context = context
        self.before_click = before_click
        self.config = config or default_settings

    async def verify(
        self,
        target: ClickTarget,
        policy: Optional[ComparisonPolicy] = None,
        options: Optional[VerifyOptions] = None,
    ) -> VerificationResult:
        policy = policy or DEFAULT_POLICY
        options = options or VerifyOptions()
        label = options.label
        timeout_ms = options.timeout_ms or self.config.nav_timeout_ms
        started = time.monotonic()

        if not options.force:
            try:
                await target.wait_for(state="visible", timeout=self.config.visible_timeout_ms)
            except PlaywrightTimeout as e:
                return self._report(VerificationResult.failing(
                    FailureReason.ELEMENT_NOT_VISIBLE, policy.name, label=label, detail=str(e).splitlines()[0]
                ), started)

        reference = await target.get_attribute("href")
        if reference is None or not reference.strip():
            return self._report(VerificationResult.failing(
                FailureReason.MISSING_REFERENCE, policy.name, label=label,
                detail=f"href={reference!r}"
            ), started)

        try:
            await target.scroll_into_view_if_needed(timeout=self.config.visible_timeout_ms)
        except PlaywrightError as e:
            logger.debug(f"scroll_into_view_if_needed failed for [{label}]: {e}")

        origin_url = self.page.url
        destination = resolve_reference(options.expected_url or reference, origin_url)
        expected_key = policy.key(destination)

        # Both waiters must be armed before the click. They carry no timeout of
        # their own: the bounds start once the click has gone out.
        new_tab_timeout_ms = options.new_tab_timeout_ms or timeout_ms
        new_tab_task = asyncio.ensure_future(self._wait_for_new_page())
        same_tab_task = asyncio.ensure_future(self._wait_for_same_tab(policy, expected_key))

        same_tab_url, new_page = None, None
        try:
            # Let both tasks register their listeners before the click goes out
            await asyncio.sleep(0)
            click_error = await self._click(target, options.force)
            if not click_error:
                same_tab_url, new_page = await self._race(
                    same_tab_task, new_tab_task, timeout_ms, new_tab_timeout_ms
                )
        finally:
            for task in (new_tab_task, same_tab_task):
                if not task.done():
                    task.cancel()
            await asyncio.wait([new_tab_task, same_tab_task])

        if click_error:
            return self._report(VerificationResult.failing(
                FailureReason.ELEMENT_NOT_VISIBLE, policy.name, expected=expected_key, label=label,
                detail=f"click failed: {click_error}"
            ), started)

        result = await self._judge(policy, expected_key, same_tab_url, new_page, options)

        if new_page is not None:
            new_tab_cleanup = await self._close_page(new_page)
            if result.outcome == NewTab.kind or not new_tab_cleanup.succeeded:
                result.cleanup = new_tab_cleanup
        # Any tab that left its page goes back, whether or not the landing matched
        if options.return_to_origin and self.page.url != origin_url:
            restore_cleanup = await self._restore(options.restore_url, origin_url)
            if result.outcome != NewTab.kind or not restore_cleanup.succeeded:
                result.cleanup = restore_cleanup

        return self._report(result, started)

    async def _wait_for_new_page(self) -> Page:
        return await self.context.wait_for_event("page", timeout=0)

    async def _wait_for_same_tab(self, policy: ComparisonPolicy, expected_key: str) -> str:
        """Resolve once a main-frame navigation lands on the expected key.

        A URL that already matches does not count; the click has to navigate.
        """
        main_frame = self.page.main_frame
        while True:
            await self.page.wait_for_event("framenavigated", predicate=lambda frame: frame == main_frame, timeout=0)
            if policy.key(self.page.url) == expected_key:
                return self.page.url

    async def _click(self, target: ClickTarget, force: bool) -> str:
        """Click without waiting for the navigation; retry once with force.

        Returns an error message when even the forced click failed.
        """
        if self.before_click:
            await self.before_click()
        try:
            await target.click(no_wait_after=True, force=force, timeout=self.config.click_timeout_ms)
            return ""
        except PlaywrightError as e:
            logger.warning(f"Regular click failed, trying force click: {str(e).splitlines()[0]}")

        if self.before_click:
            await self.before_click()
        try:
            await target.click(no_wait_after=True, force=True, timeout=self.config.click_timeout_ms)
            return ""
        except PlaywrightError as e:
            return str(e).splitlines()[0]

    async def _race(self, same_tab_task, new_tab_task, timeout_ms: int, new_tab_timeout_ms: int):
        """Wait for the first waiter to report a navigation.

        Each waiter is dropped once its own bound, counted from the end of the
        click, has passed. The loser gets a short grace window so that a click
        which both opened a tab and moved the current one is seen as such.
        """
        now = time.monotonic()
        deadlines = {same_tab_task: now + timeout_ms / 1000, new_tab_task: now + new_tab_timeout_ms / 1000}
        pending = {same_tab_task, new_tab_task}
        winner_seen = False
        while pending and not winner_seen:
            for task in [t for t in pending if deadlines[t] <= time.monotonic()]:
                task.cancel()
                pending.discard(task)
            if not pending:
                break
            remaining = min(deadlines[t] for t in pending) - time.monotonic()
            done, pending = await asyncio.wait(
                pending, timeout=max(remaining, 0), return_when=asyncio.FIRST_COMPLETED
            )
            winner_seen = any(task.result() is not None for task in done)

        if winner_seen and pending:
            await asyncio.wait(pending, timeout=self.config.disambiguation_grace_ms / 1000)

        same_tab_url = same_tab_task.result() if same_tab_task.done() and not same_tab_task.cancelled() else None
        new_page = new_tab_task.result() if new_tab_task.done() and not new_tab_task.cancelled() else None
        return same_tab_url, new_page

    async def _judge(
        self,
        policy: ComparisonPolicy,
        expected_key: str,
        same_tab_url: Optional[str],
        new_page: Optional[Page],
        options: VerifyOptions,
    ) -> VerificationResult:
        label = options.label
        outcome: NavigationOutcome
        ambiguous = same_tab_url is not None and new_page is not None

        new_tab_url = await self._settle_new_page(new_page, policy, expected_key) if new_page is not None else None

        if same_tab_url is not None and (policy.key(same_tab_url) == expected_key or new_page is None):
            outcome = SameTab(same_tab_url)
        elif new_page is not None:
            outcome = NewTab(new_page, new_tab_url)
        else:
            outcome = NoNavigation()

        if isinstance(outcome, NoNavigation):
            return VerificationResult.failing(
                FailureReason.NO_NAVIGATION_DETECTED, policy.name, expected=expected_key,
                actual=policy.key(self.page.url), label=label, outcome=outcome.kind,
                detail=f"current={self.page.url}"
            )

        actual_key = policy.key(outcome.final_url)
        if actual_key != expected_key:
            return VerificationResult.failing(
                FailureReason.COMPARISON_MISMATCH, policy.name, expected=expected_key, actual=actual_key,
                label=label, outcome=outcome.kind, ambiguous=ambiguous, detail=f"final={outcome.final_url}"
            )

        if isinstance(outcome, SameTab) and options.check_not_found:
            title = await self._page_title()
            if NOT_FOUND_TITLE.search(title):
                return VerificationResult.failing(
                    FailureReason.NOT_FOUND_PAGE, policy.name, expected=expected_key, actual=actual_key,
                    label=label, outcome=outcome.kind, ambiguous=ambiguous, detail=f"title={title!r}"
                )

        return VerificationResult.passing(
            policy.name, expected_key, actual_key, label=label, outcome=outcome.kind, ambiguous=ambiguous
        )

    async def _settle_new_page(self, new_page: Page, policy: ComparisonPolicy, expected_key: str) -> str:
        """Give a fresh tab time to leave about:blank and follow redirects."""
        ready_timeout = self.config.new_page_ready_timeout_ms
        try:
            await new_page.wait_for_load_state("domcontentloaded", timeout=ready_timeout)
        except PlaywrightTimeout:
            logger.debug(f"New tab did not reach domcontentloaded within {ready_timeout}ms: {new_page.url}")
        if policy.key(new_page.url) != expected_key:
            try:
                await new_page.wait_for_url(
                    lambda url: policy.key(url) == expected_key, timeout=ready_timeout, wait_until="commit"
                )
            except PlaywrightTimeout:
                pass
        return new_page.url

    async def _page_title(self) -> str:
        try:
            await self.page.wait_for_load_state("domcontentloaded", timeout=self.config.new_page_ready_timeout_ms)
        except PlaywrightTimeout:
            logger.debug(f"Page did not reach domcontentloaded before title check: {self.page.url}")
        return await self.page.title()

    async def _restore(self, restore_url: Optional[str], origin_url: str) -> CleanupResult:
        """Put the session back where it was. Never raises.

        History is used when no restore URL is given; if that does not lead
        back to the origin (the navigation replaced the entry), go there
        directly.
        """
        action = "goto" if restore_url else "go_back"
        try:
            if restore_url:
                await self.page.goto(restore_url, wait_until="domcontentloaded")
            else:
                await self.page.go_back(wait_until="domcontentloaded")
                if self.page.url != origin_url:
                    action = "goto"
                    await self.page.goto(origin_url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            log_action("cleanup", status="error", url=restore_url or self.page.url, reason=str(e).splitlines()[0])
            return CleanupResult(action=action, succeeded=False, error=str(e).splitlines()[0])
        return CleanupResult(action=action, succeeded=True)

    async def _close_page(self, page: Page) -> CleanupResult:
        try:
            await page.close()
        except PlaywrightError as e:
            log_action("cleanup", status="error", url=page.url, reason=str(e).splitlines()[0])
            return CleanupResult(action="close_tab", succeeded=False, error=str(e).splitlines()[0])
        return CleanupResult(action="close_tab", succeeded=True)

    def _report(self, result: VerificationResult, started: float) -> VerificationResult:
        log_action(
            "verify_navigation",
            status="success" if result.passed else "fail",
            label=result.label,
            expected=result.expected,
            actual=result.actual,
            policy=result.policy,
            outcome=result.outcome,
            reason=result.reason.value if result.reason else None,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return result
