# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

import inspect
from dataclasses import field
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Optional, TypeAlias

from pydantic.dataclasses import dataclass as validated_dataclass

DecisionKind: TypeAlias = Literal["invalid_input", "malformed_url", "policy_violation"]
Resume: TypeAlias = Callable[[], Any]
URLValidator: TypeAlias = Callable[[str], bool]


@validated_dataclass(frozen=True)
class PolicyConfig:
    allowed_domains: tuple[str, ...] = ()
    allow_subdomains: bool = False
    allow_localhost: bool = False
    allow_relative_urls: bool = True
    strict_mode: bool = False
    log_violations: bool = True
    custom_validator: Optional[URLValidator] = None
    exact_private_ranges: bool = False


@validated_dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    sanitized_url: Optional[str] = None
    kind: Optional[DecisionKind] = None


@validated_dataclass(frozen=True)
class Violation:
    original_url: str
    reason: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_agent: Optional[str] = None
    ip: Optional[str] = None


@validated_dataclass(frozen=True)
class ParsedUrl:
    scheme: str
    netloc: str
    hostname: Optional[str]
    port: Optional[int]
    path: str
    query: str
    fragment: str

    @property
    def relative(self) -> bool:
        return self.scheme == "" and self.netloc == ""


class PendingNavigation:
    """A deferred navigation. `resume` performs it, `on_discard` runs when it is
    cancelled or superseded."""

    __slots__ = ("url", "resume", "on_discard")

    def __init__(
        self,
        url: str,
        resume: Resume,
        on_discard: Optional[Callable[["PendingNavigation"], Any]] = None,
    ) -> None:
        self.url = url
        self.resume = resume
        self.on_discard = on_discard

    def __repr__(self) -> str:
        return f"PendingNavigation(url={self.url!r})"


def allowed(sanitized_url: Optional[str] = None) -> Decision:
    return Decision(allowed=True, sanitized_url=sanitized_url)


def blocked(reason: str, kind: DecisionKind = "policy_violation") -> Decision:
    return Decision(allowed=False, reason=reason, kind=kind)


async def ensure_awaitable(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    result = func(*args, **kwargs)

    if inspect.iscoroutine(result):
        return await result

    return result
