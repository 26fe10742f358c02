# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
This file intends to provide (1) a simple replacement for raw `assert`s and (2) functions for commonly used constraints.
"""

import re
from typing import Any, Optional

DOMAIN_PATTERN = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


def is_valid_domain(domain: Any) -> bool:
    if not domain or not isinstance(domain, str):
        return False

    return DOMAIN_PATTERN.match(domain) is not None and "." in domain


def ensure(
    condition: Any,
    exctype: type[Exception] = ValueError,
    msg: Optional[str] = None,
) -> None:
    if not condition:
        if msg:
            msg = "Constraint violation: " + msg
        else:
            msg = "Constraint violation"

        raise exctype(msg)
