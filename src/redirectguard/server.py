# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import ORJSONResponse, PlainTextResponse

import redirectguard as r
import redirectguard.deployment as d
from redirectguard.firewall import RedirectFirewall
from redirectguard.middleware import FirewallOptions, RedirectFirewallMiddleware
from redirectguard.types import PolicyConfig, Violation


def violation2dict(violation: Violation) -> dict[str, Any]:
    return dict(
        timestamp=violation.timestamp.isoformat(),
        originalUrl=violation.original_url,
        reason=violation.reason,
        userAgent=violation.user_agent,
        ip=violation.ip,
    )


def router_for(firewall: RedirectFirewall) -> APIRouter:
    router = APIRouter()

    @router.get("/")
    async def index(request: Request) -> PlainTextResponse:
        domains = ", ".join(firewall.get_allowed_domains()) or "(none)"

        return PlainTextResponse(
            f"redirectguard {r.__version__}\nAllowed: {domains}\n"
        )

    @router.get("/go")
    async def go(request: Request) -> PlainTextResponse:
        # Only reached if no redirect target was supplied
        return PlainTextResponse("No redirect target given.\n")

    @router.get("/violations")
    async def violations(request: Request) -> ORJSONResponse:
        return ORJSONResponse([violation2dict(v) for v in firewall.get_violations()])

    @router.delete("/violations")
    async def clear_violations(request: Request) -> ORJSONResponse:
        firewall.clear_violations()

        return ORJSONResponse(dict(cleared=True))

    return router


def create_app(
    policy: Optional[PolicyConfig] = None,
    options: Optional[FirewallOptions] = None,
) -> FastAPI:
    firewall = RedirectFirewall(policy)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        d.LOGGER.info(f"This is redirectguard {r.__version__}")
        d.LOGGER.info(f"Server is running at http://{d.HOST}:{d.PORT}/")

        if (la := len(firewall.get_allowed_domains())) == 1:
            d.LOGGER.info("There is 1 allowed domain")
        else:
            d.LOGGER.info(f"There are {la} allowed domains")

        yield

    app = FastAPI(lifespan=lifespan, redirect_slashes=False)
    app.add_middleware(
        RedirectFirewallMiddleware,
        options=options if options is not None else FirewallOptions(paths=("/go",)),
        firewall=firewall,
    )
    app.include_router(router_for(firewall))
    app.state.firewall = firewall

    return app
