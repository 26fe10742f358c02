# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Binding of a firewall to a reactive UI: guarded navigation helpers and the
last decision as observable state."""

from typing import Any, Callable, Optional

import redirectguard.deployment as d
from redirectguard.firewall import RedirectFirewall
from redirectguard.interception import NavigationHost
from redirectguard.types import Decision, PolicyConfig

BLOCKED_MESSAGE = "Navigation blocked by security policy"


class FirewallBinding:
    def __init__(
        self,
        policy: PolicyConfig,
        host: NavigationHost,
        on_violation: Optional[Callable[[Decision], Any]] = None,
        auto_validate: bool = False,
    ) -> None:
        self.firewall = RedirectFirewall(policy)
        self.host = host
        self.on_violation = on_violation
        self.auto_validate = auto_validate
        self._last_result: Optional[Decision] = None
        self._subscribers: list[Callable[[Decision], Any]] = []

    @property
    def last_result(self) -> Optional[Decision]:
        return self._last_result

    def subscribe(self, callback: Callable[[Decision], Any]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def validate_redirect(self, url: str) -> Decision:
        result = self.firewall.validate_redirect(url)
        self._last_result = result

        for subscriber in list(self._subscribers):
            subscriber(result)

        if not result.allowed and self.on_violation is not None:
            self.on_violation(result)

        return result

    def safe_redirect(self, url: str, fallback_url: Optional[str] = None) -> None:
        result = self.validate_redirect(url)

        if result.allowed:
            self.host.navigate(result.sanitized_url or url)
        elif fallback_url:
            self.host.navigate(fallback_url)
        else:
            d.LOGGER.error(f"Redirect blocked: {result.reason}")

    def safe_navigate(self, url: str, fallback_url: Optional[str] = None) -> None:
        result = self.validate_redirect(url)

        if result.allowed:
            self.host.push_history(result.sanitized_url or url)
        elif fallback_url:
            self.host.push_history(fallback_url)
        else:
            d.LOGGER.error(f"Navigation blocked: {result.reason}")

    def on_before_unload(self, current_url: str) -> Optional[str]:
        """Return a veto message if leaving for `current_url` is not allowed."""
        if not self.auto_validate:
            return None

        if not self.validate_redirect(current_url).allowed:
            return BLOCKED_MESSAGE

        return None

    def on_pop_state(self, current_url: str) -> bool:
        """Undo a back/forward navigation to a blocked location. Returns whether
        the navigation was undone."""
        if not self.auto_validate:
            return False

        if not self.validate_redirect(current_url).allowed:
            self.host.back()

            return True

        return False
