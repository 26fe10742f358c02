# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Interception of navigations in a hosting UI surface.

The host routes three kinds of intents through a `NavigationInterceptor`:
element activation (links), form submission and history mutation. The
interceptor never patches the host; the host calls `on_activate`, `on_submit`
and `on_history` itself and honors the outcome.
"""

import dataclasses
from abc import ABC, abstractmethod
from typing import Any, Callable, Literal, Optional, cast

import redirectguard.deployment as d
from redirectguard.confirmation import ConfirmationCoordinator
from redirectguard.firewall import RedirectFirewall
from redirectguard.interstitial import InterstitialConfig, render_interstitial
from redirectguard.types import Decision, PolicyConfig, Resume, Violation

InterstitialCallback = Callable[[str, Callable[[], bool], Callable[[], bool]], Any]
NOTIFICATION_TITLE = "Open Redirect Firewall"


class NavigationHost(ABC):
    """What an interceptor needs from its hosting environment."""

    @abstractmethod
    def navigate(self, url: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def submit(self, form: Any) -> None:
        raise NotImplementedError

    def push_history(self, url: str) -> None:
        pass

    def back(self) -> None:
        pass

    def notify(self, title: str, body: str) -> None:
        pass

    def show_interstitial(self, html: str) -> None:
        pass

    def dismiss_interstitial(self) -> None:
        pass

    @abstractmethod
    def callback_action(self, handle: Callable[[], Any]) -> str:
        """Turn `handle` into an action the rendered interstitial can invoke."""
        raise NotImplementedError


class NullHost(NavigationHost):
    """A host that performs nothing and remembers everything."""

    def __init__(self) -> None:
        self.navigations: list[str] = []
        self.submissions: list[Any] = []
        self.history: list[str] = []
        self.backs: int = 0
        self.notifications: list[tuple[str, str]] = []
        self.interstitial: Optional[str] = None
        self.actions: dict[str, Callable[[], Any]] = {}

    def navigate(self, url: str) -> None:
        self.navigations.append(url)

    def submit(self, form: Any) -> None:
        self.submissions.append(form)

    def push_history(self, url: str) -> None:
        self.history.append(url)

    def back(self) -> None:
        self.backs += 1

    def notify(self, title: str, body: str) -> None:
        self.notifications.append((title, body))

    def show_interstitial(self, html: str) -> None:
        self.interstitial = html

    def dismiss_interstitial(self) -> None:
        self.interstitial = None

    def callback_action(self, handle: Callable[[], Any]) -> str:
        action = f"redirectguard.invoke({len(self.actions)})"
        self.actions[action] = handle

        return action

    def trigger(self, action: str) -> Any:
        return self.actions[action]()


@dataclasses.dataclass
class NavigationEvent:
    kind: Literal["activate", "submit"]
    url: Optional[str]
    form: Any = None
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclasses.dataclass
class InterceptorConfig:
    enabled: bool = True
    show_notifications: bool = True
    log_to_console: bool = True
    show_interstitial: bool = False
    trust_all_domains: bool = False
    full_page_interstitial: bool = False
    interstitial: Optional[InterstitialConfig] = None
    on_interstitial: Optional[InterstitialCallback] = None
    on_full_page_interstitial: Optional[InterstitialCallback] = None


class NavigationInterceptor:
    def __init__(
        self,
        firewall: RedirectFirewall,
        config: Optional[InterceptorConfig] = None,
        host: Optional[NavigationHost] = None,
        coordinator: Optional[ConfirmationCoordinator] = None,
    ) -> None:
        self.firewall = firewall
        self.config = config if config is not None else InterceptorConfig()
        self.host = host
        self.coordinator = (
            coordinator if coordinator is not None else ConfirmationCoordinator()
        )
        self._enabled = self.config.enabled

        if host is None:
            d.LOGGER.debug("No navigation host available, interception is inactive")

    @property
    def active(self) -> bool:
        return self._enabled and self.host is not None

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def safe_redirect(self, url: str) -> None:
        if self.host is None:
            return

        host = self.host
        self._handle_redirect(url, lambda: host.navigate(url))

    def on_activate(self, event: NavigationEvent) -> None:
        if not self.active or not event.url:
            return

        host, url = cast(NavigationHost, self.host), event.url

        self._intercept(
            event, url, lambda: host.navigate(url), "Link redirect blocked"
        )

    def on_submit(self, event: NavigationEvent) -> None:
        if not self.active or not event.url:
            return

        host, form = cast(NavigationHost, self.host), event.form

        self._intercept(
            event, event.url, lambda: host.submit(form), "Form redirect blocked"
        )

    def on_history(self, url: Optional[str]) -> bool:
        """Return whether the host may apply a history mutation to `url`.

        History entries change synchronously, so there is no confirmation step
        here, and `trust_all_domains` does not apply.
        """
        if not self.active or not url:
            return True

        decision = self.firewall.validate_redirect(url)

        if not decision.allowed:
            self._report(url, decision.reason or "History navigation blocked")

            return False

        return True

    def confirm_redirect(self) -> bool:
        return self.coordinator.confirm()

    def cancel_redirect(self) -> bool:
        return self.coordinator.cancel()

    def _intercept(
        self,
        event: NavigationEvent,
        url: str,
        resume: Resume,
        fallback_reason: str,
    ) -> None:
        decision = self.firewall.validate_redirect(url)

        if not decision.allowed and not self.config.trust_all_domains:
            event.prevent_default()
            self._report(url, decision.reason or fallback_reason)
        elif self.config.show_interstitial:
            event.prevent_default()
            self._show_interstitial(url, resume)

    def _handle_redirect(self, url: str, resume: Resume) -> None:
        decision = self.firewall.validate_redirect(url)

        if decision.allowed or self.config.trust_all_domains:
            if self.config.show_interstitial:
                self._show_interstitial(url, resume)
            else:
                resume()
        else:
            self._report(url, decision.reason or "Unknown violation")

    def _show_interstitial(self, url: str, resume: Resume) -> None:
        host = cast(NavigationHost, self.host)

        def dismissed(*args: Any) -> None:
            host.dismiss_interstitial()

        def confirmed() -> None:
            host.dismiss_interstitial()
            resume()

        on_confirm, on_cancel = self.coordinator.request(url, confirmed, dismissed)

        if self.config.interstitial is not None:
            host.show_interstitial(
                render_interstitial(
                    url,
                    self.config.interstitial,
                    host.callback_action(on_confirm),
                    host.callback_action(on_cancel),
                )
            )
        elif (
            self.config.full_page_interstitial
            and self.config.on_full_page_interstitial is not None
        ):
            self.config.on_full_page_interstitial(url, on_confirm, on_cancel)
        elif self.config.on_interstitial is not None:
            self.config.on_interstitial(url, on_confirm, on_cancel)

    def _report(self, url: str, reason: str) -> None:
        if self.config.log_to_console:
            d.LOGGER.warning(f"Blocked: {reason} - URL: {url}")

        if self.config.show_notifications and self.host is not None:
            self.host.notify(NOTIFICATION_TITLE, f"Redirect blocked: {reason}")

    def update_config(self, **changes: Any) -> None:
        self.firewall.update_config(**changes)

    def update_interceptor_config(self, **changes: Any) -> None:
        self.config = dataclasses.replace(self.config, **changes)

        if "enabled" in changes:
            self._enabled = changes["enabled"]

    def validate_url(self, url: str) -> Decision:
        return self.firewall.validate_redirect(url)

    def get_violations(self) -> list[Violation]:
        return self.firewall.get_violations()


def create_interceptor(
    policy: PolicyConfig,
    config: Optional[InterceptorConfig] = None,
    host: Optional[NavigationHost] = None,
) -> NavigationInterceptor:
    return NavigationInterceptor(RedirectFirewall(policy), config, host)
