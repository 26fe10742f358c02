# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

import click
import orjson
import uvicorn

import redirectguard.deployment as d
from redirectguard.firewall import RedirectFirewall
from redirectguard.types import PolicyConfig


def policy_from(
    allow: tuple[str, ...],
    subdomains: bool,
    localhost: bool,
    no_relative: bool = False,
    strict: bool = False,
) -> PolicyConfig:
    return PolicyConfig(
        allowed_domains=allow or d.ALLOWED_DOMAINS,
        allow_subdomains=subdomains,
        allow_localhost=localhost,
        allow_relative_urls=not no_relative,
        strict_mode=strict,
    )


@click.group()
def cli() -> None:
    pass


# fmt: off
@click.command(help="Check URLs against a redirect policy")
@click.argument("urls", nargs=-1, required=True)
@click.option("--allow", "-a", multiple=True, help="Allowed domain (repeatable).")
@click.option("--subdomains", is_flag=True, help="Also allow subdomains.")
@click.option("--localhost", is_flag=True, help="Allow localhost and private hosts.")
@click.option("--no-relative", is_flag=True, help="Block relative URLs.")
@click.option("--strict", is_flag=True, help="Report sanitized URLs.")
@click.option("--json", "as_json", is_flag=True, help="Output JSON lines.")
@click.pass_context
# fmt: on
def check(
    ctx: click.Context,
    urls: tuple[str, ...],
    allow: tuple[str, ...],
    subdomains: bool,
    localhost: bool,
    no_relative: bool,
    strict: bool,
    as_json: bool,
) -> None:
    firewall = RedirectFirewall(
        policy_from(allow, subdomains, localhost, no_relative, strict)
    )
    all_allowed = True

    for url in urls:
        decision = firewall.validate_redirect(url)
        all_allowed = all_allowed and decision.allowed

        if as_json:
            click.echo(
                orjson.dumps(
                    dict(
                        url=url,
                        allowed=decision.allowed,
                        reason=decision.reason,
                        sanitizedUrl=decision.sanitized_url,
                    )
                ).decode()
            )
        elif decision.allowed:
            click.echo(f"ALLOWED  {decision.sanitized_url or url}")
        else:
            click.echo(f"BLOCKED  {url}  ({decision.reason})")

    if not all_allowed:
        ctx.exit(1)


# fmt: off
@click.command(help="Run the demo redirect server")
@click.option("--host", "-h", default="127.0.0.1", show_default="127.0.0.1", help="Host")
@click.option("--port", "-p", default=8000, show_default=8000, help="Port")
@click.option("--allow", "-a", multiple=True, help="Allowed domain (repeatable).")
@click.option("--subdomains", is_flag=True, help="Also allow subdomains.")
@click.option("--localhost", is_flag=True, help="Allow localhost and private hosts.")
# fmt: on
def run(
    host: str,
    port: int,
    allow: tuple[str, ...],
    subdomains: bool,
    localhost: bool,
) -> None:
    from redirectguard.server import create_app

    d.HOST = host
    d.PORT = port

    uvicorn.run(
        create_app(policy_from(allow, subdomains, localhost)),
        host=host,
        port=port,
        **d.UVICORN_KWARGS,
    )


cli.add_command(check)
cli.add_command(run)
