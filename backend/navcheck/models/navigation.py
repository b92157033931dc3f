"""Value types exchanged by the navigation verifier and its callers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, Union


class ClickTarget(Protocol):
    """Anything that behaves like a Playwright ``Locator`` for our purposes."""

    async def get_attribute(self, name: str, *, timeout: Optional[float] = None) -> Optional[str]: ...

    async def wait_for(self, *, timeout: Optional[float] = None, state: Optional[str] = None) -> None: ...

    async def scroll_into_view_if_needed(self, *, timeout: Optional[float] = None) -> None: ...

    async def click(
        self,
        *,
        force: Optional[bool] = None,
        no_wait_after: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> None: ...


class FailureReason(str, Enum):
    ELEMENT_NOT_VISIBLE = "element_not_visible"
    MISSING_REFERENCE = "missing_reference"
    COMPARISON_MISMATCH = "comparison_mismatch"
    NO_NAVIGATION_DETECTED = "no_navigation_detected"
    NOT_FOUND_PAGE = "not_found_page"


@dataclass(frozen=True)
class SameTab:
    final_url: str

    kind = "same_tab"


@dataclass(frozen=True)
class NewTab:
    page: Any
    final_url: str

    kind = "new_tab"


@dataclass(frozen=True)
class NoNavigation:
    kind = "none"


NavigationOutcome = Union[SameTab, NewTab, NoNavigation]


@dataclass
class VerifyOptions:
    """Per-call knobs. ``None`` timeouts fall back to ``settings``."""
    timeout_ms: Optional[int] = None
    return_to_origin: bool = True
    restore_url: Optional[str] = None
    expected_url: Optional[str] = None
    new_tab_timeout_ms: Optional[int] = None
    label: str = ""
    force: bool = False
    check_not_found: bool = True


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of the best-effort restore step.

    A failed cleanup never changes the verdict; it is kept on the result so
    a report can still show that the session was left somewhere unexpected.
    """
    action: str
    succeeded: bool
    error: str = ""

    @classmethod
    def skipped(cls) -> "CleanupResult":
        return cls(action="none", succeeded=True)


@dataclass
class VerificationResult:
    passed: bool
    policy: str
    expected: str = ""
    actual: str = ""
    reason: Optional[FailureReason] = None
    label: str = ""
    outcome: str = NoNavigation.kind
    ambiguous: bool = False
    detail: str = ""
    cleanup: CleanupResult = field(default_factory=CleanupResult.skipped)

    @classmethod
    def passing(cls, policy: str, expected: str, actual: str, **kwargs) -> "VerificationResult":
        return cls(passed=True, policy=policy, expected=expected, actual=actual, **kwargs)

    @classmethod
    def failing(cls, reason: FailureReason, policy: str, expected: str = "", actual: str = "",
                **kwargs) -> "VerificationResult":
        return cls(passed=False, reason=reason, policy=policy, expected=expected, actual=actual, **kwargs)

    def describe(self) -> str:
        """One-line summary suitable for an assertion message."""
        prefix = f"[{self.label}] " if self.label else ""
        if self.passed:
            text = f"{prefix}PASS via {self.outcome} ({self.policy}): {self.actual}"
        else:
            text = (
                f"{prefix}FAIL {self.reason.value} ({self.policy}, outcome={self.outcome}): "
                f"expected={self.expected!r} actual={self.actual!r}"
            )
            if self.detail:
                text += f" - {self.detail}"
        if self.ambiguous:
            text += " [new tab and same-tab navigation both observed]"
        if not self.cleanup.succeeded:
            text += f" [cleanup {self.cleanup.action} failed: {self.cleanup.error}]"
        return text

    def assert_passed(self) -> None:
        assert self.passed, self.describe()
