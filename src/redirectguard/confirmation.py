# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Confirmation is a finite-state machine with a single slot.

State idle:
    Nothing is pending. confirm() and cancel() do nothing.

State pending:
    One navigation waits for the user. confirm() runs its resume action once
    and returns to idle, cancel() drops it and returns to idle.

    A new request() while pending cancels the waiting navigation explicitly
    (its `on_discard` hook runs, its resume action does not) and takes its
    place.

There is no timeout. Each request() hands out its own confirm/cancel handles;
handles of a request that is no longer pending do nothing.
"""

from typing import Any, Callable, Literal, Optional

import redirectguard.deployment as d
from redirectguard.types import PendingNavigation, Resume

Handles = tuple[Callable[[], bool], Callable[[], bool]]


class ConfirmationCoordinator:
    def __init__(
        self,
        on_replace: Optional[Callable[[PendingNavigation], Any]] = None,
    ) -> None:
        self._pending: Optional[PendingNavigation] = None
        self.on_replace = on_replace

    @property
    def state(self) -> Literal["idle", "pending"]:
        return "idle" if self._pending is None else "pending"

    @property
    def pending(self) -> Optional[PendingNavigation]:
        return self._pending

    def request(
        self,
        url: str,
        resume: Resume,
        on_discard: Optional[Callable[[PendingNavigation], Any]] = None,
    ) -> Handles:
        previous = self._pending
        current = PendingNavigation(url, resume, on_discard)

        self._pending = current

        if previous is not None:
            d.LOGGER.debug(
                f"Confirmation for {previous.url} superseded by {current.url}"
            )
            self._discard(previous)

            if self.on_replace is not None:
                self.on_replace(previous)

        return self._handles(current)

    def confirm(self) -> bool:
        pending = self._pending

        if pending is None:
            return False

        self._pending = None
        d.LOGGER.debug(f"Confirmed navigation to {pending.url}")
        pending.resume()

        return True

    def cancel(self) -> bool:
        pending = self._pending

        if pending is None:
            return False

        self._pending = None
        d.LOGGER.debug(f"Cancelled navigation to {pending.url}")
        self._discard(pending)

        return True

    def _discard(self, pending: PendingNavigation) -> None:
        if pending.on_discard is not None:
            pending.on_discard(pending)

    def _handles(self, pending: PendingNavigation) -> Handles:
        fired = False

        def once(action: Callable[[], bool]) -> Callable[[], bool]:
            def handle() -> bool:
                nonlocal fired

                if fired or self._pending is not pending:
                    return False

                fired = True

                return action()

            return handle

        return once(self.confirm), once(self.cancel)
