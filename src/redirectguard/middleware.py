# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
This file implements the HTTP adapter: a Starlette middleware that guards a
redirect parameter and a FastAPI dependency that validates `redirectUrl`.
"""

import dataclasses
from typing import Any, Awaitable, Callable, Optional, Union

import orjson
from fastapi import HTTPException, Request
from fastapi.responses import HTMLResponse, ORJSONResponse, RedirectResponse, Response
from markupsafe import Markup
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

import redirectguard.deployment as d
from redirectguard.constraints import ensure
from redirectguard.firewall import RedirectFirewall
from redirectguard.interstitial import (
    ENV,
    InterstitialConfig,
    InterstitialContent,
    render_interstitial,
)
from redirectguard.types import PolicyConfig, ensure_awaitable

InterstitialHook = Callable[[Request, str], Union[Response, Awaitable[Response]]]
BLOCKED_ERROR = "Invalid redirect URL"
BLOCKED_MESSAGE = "The requested redirect URL is not allowed by security policy"


@dataclasses.dataclass
class FirewallOptions:
    redirect_param: str = "redirect"
    redirect_header: str = "x-redirect-url"
    fallback_url: Optional[str] = None
    status_code: int = 302
    block_status_code: int = 400
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    show_interstitial: bool = False
    on_interstitial: Optional[InterstitialHook] = None
    paths: Optional[tuple[str, ...]] = None


def client_details(request: Request) -> dict[str, Optional[str]]:
    return dict(
        user_agent=request.headers.get("user-agent"),
        ip=request.client.host if request.client is not None else None,
    )


def blocked_response(reason: Optional[str], status_code: int) -> ORJSONResponse:
    return ORJSONResponse(
        dict(error=BLOCKED_ERROR, reason=reason, message=BLOCKED_MESSAGE),
        status_code=status_code,
    )


async def interstitial_page(request: Request, url: str) -> HTMLResponse:
    """Default interstitial hook: a full-page confirmation linking to `url`."""
    config = InterstitialConfig(type="fullpage", content=InterstitialContent())
    fragment = render_interstitial(
        url,
        config,
        f"window.location.href = {orjson.dumps(url).decode()}",
        "window.history.back()",
    )

    return HTMLResponse(
        ENV.get_template("Page.html").render(
            title=config.content.title, interstitial=Markup(fragment)
        )
    )


class RedirectFirewallMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        policy: Optional[PolicyConfig] = None,
        options: Optional[FirewallOptions] = None,
        firewall: Optional[RedirectFirewall] = None,
    ) -> None:
        super().__init__(app)

        self.firewall = firewall if firewall is not None else RedirectFirewall(policy)
        self.options = options if options is not None else FirewallOptions()

    def guarded(self, request: Request) -> bool:
        if self.options.paths is None:
            return True

        return any(request.url.path.startswith(p) for p in self.options.paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        opts = self.options
        url = request.query_params.get(opts.redirect_param) or request.headers.get(
            opts.redirect_header
        )

        if not url or not self.guarded(request):
            return await call_next(request)

        decision = self.firewall.validate_redirect(url, **client_details(request))

        if not decision.allowed:
            d.LOGGER.debug(f"Refused redirect to {url!r}: {decision.reason}")

            if opts.fallback_url:
                return RedirectResponse(opts.fallback_url, status_code=302)

            return blocked_response(decision.reason, opts.block_status_code)

        final_url = decision.sanitized_url or url

        if opts.show_interstitial and opts.on_interstitial is not None:
            return await ensure_awaitable(opts.on_interstitial, request, final_url)

        return RedirectResponse(
            final_url, status_code=opts.status_code, headers=opts.headers
        )


async def redirect_url_from(request: Request) -> Optional[str]:
    if (url := request.query_params.get("redirectUrl")) is not None:
        return url

    content_type = request.headers.get("content-type", "")

    try:
        if content_type.startswith("application/json"):
            body = await request.json()

            if isinstance(body, dict) and isinstance(body.get("redirectUrl"), str):
                return str(body["redirectUrl"])
        elif content_type.startswith(
            ("application/x-www-form-urlencoded", "multipart/form-data")
        ):
            form = await request.form()

            if isinstance(form.get("redirectUrl"), str):
                return str(form["redirectUrl"])
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed request body")

    return None


def redirect_validator(
    policy: Union[PolicyConfig, RedirectFirewall],
) -> Callable[[Request], Awaitable[Optional[str]]]:
    """
    Build a FastAPI dependency that validates `redirectUrl` from the query
    string or the request body.

    The dependency resolves to the sanitized (or original) URL, or to None if
    no URL was supplied. Blocked URLs raise an HTTPException with status 400.
    """
    if isinstance(policy, RedirectFirewall):
        firewall = policy
    else:
        firewall = RedirectFirewall(policy)

    async def validated_redirect(request: Request) -> Optional[str]:
        url = await redirect_url_from(request)

        if not url:
            return None

        decision = firewall.validate_redirect(url, **client_details(request))

        if not decision.allowed:
            raise HTTPException(
                status_code=400,
                detail=dict(error=BLOCKED_ERROR, reason=decision.reason),
            )

        return decision.sanitized_url or url

    return validated_redirect


def firewall_options(**kwargs: Any) -> tuple[PolicyConfig, FirewallOptions]:
    """Split keyword arguments into policy and adapter options."""
    option_names = {f.name for f in dataclasses.fields(FirewallOptions)}
    policy_names = {f.name for f in dataclasses.fields(PolicyConfig)}

    for key in kwargs:
        ensure(
            key in option_names or key in policy_names,
            TypeError,
            f"Unknown firewall option '{key}'",
        )

    return (
        PolicyConfig(**{k: v for k, v in kwargs.items() if k not in option_names}),
        FirewallOptions(**{k: v for k, v in kwargs.items() if k in option_names}),
    )
