# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Open redirect firewall: policy evaluation for redirect targets, navigation
interception and confirmation of outbound navigation."""

from redirectguard.confirmation import ConfirmationCoordinator
from redirectguard.firewall import RedirectFirewall, create_default_config
from redirectguard.types import Decision, PolicyConfig, Violation

__version_info__ = 0, 1, 0
__version__ = ".".join(map(str, __version_info__))
__author__ = "Max R. P. Grossmann, Holger Gerhardt, et al."

__all__ = [
    "ConfirmationCoordinator",
    "Decision",
    "PolicyConfig",
    "RedirectFirewall",
    "Violation",
    "create_default_config",
]
