# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

import logging
import os
from typing import Any, Optional

logging.basicConfig(level=logging.INFO)

ALLOWED_DOMAINS: tuple[str, ...] = tuple(
    d.strip()
    for d in os.getenv("REDIRECTGUARD_ALLOWED_DOMAINS", "").split(",")
    if d.strip()
)
HOST: str = "127.0.0.1"
LOGGER: Any = logging.getLogger("redirectguard")
MAX_VIOLATIONS: Optional[int] = None
PORT: int = 8000
UVICORN_KWARGS: dict[str, Any] = dict(
    reload=False,
    log_level="info",
)

if (maxv := os.getenv("REDIRECTGUARD_MAX_VIOLATIONS", "")) != "":
    try:
        MAX_VIOLATIONS = int(maxv)
    except ValueError:
        raise ValueError(
            f"Invalid REDIRECTGUARD_MAX_VIOLATIONS environment variable: {maxv}"
        )

    if MAX_VIOLATIONS <= 0:
        LOGGER.warning("REDIRECTGUARD_MAX_VIOLATIONS <= 0, keeping all violations.")
        MAX_VIOLATIONS = None
