# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Syntactic URL handling. Nothing in here touches the network.

A URL is relative if it has neither a scheme nor a network location. Note that
protocol-relative URLs (`//evil.com/x`) carry a network location and are thus
treated as absolute.
"""

import ipaddress
import re
from typing import Any, Callable, Iterable, Optional
from urllib.parse import urlsplit

from redirectguard.constraints import is_valid_domain
from redirectguard.types import ParsedUrl

LOCAL_HOSTNAMES = frozenset(("localhost", "127.0.0.1"))
PRIVATE_PREFIXES = ("192.168.", "10.", "172.")
SPECIAL_SCHEMES = frozenset(("http", "https", "ws", "wss", "ftp", "file"))
SCHEME_PATTERN = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")


def parse(raw: str) -> ParsedUrl:
    """Split `raw` into its components. Raises ValueError if it is malformed.

    Browsers read `\\` as `/` in URLs with a special scheme and in URLs that
    start with a slash, so `https://evil.com\\@example.com` goes to evil.com.
    The same reading is applied here before splitting.
    """
    raw = raw.strip()
    scheme = SCHEME_PATTERN.match(raw)

    if raw.startswith(("/", "\\")) or (
        scheme is not None and scheme.group(1).lower() in SPECIAL_SCHEMES
    ):
        raw = raw.replace("\\", "/")

    parts = urlsplit(raw)

    if "\\" in parts.netloc:
        raise ValueError(f"Backslash in network location of {raw!r}")

    return ParsedUrl(
        scheme=parts.scheme,
        netloc=parts.netloc,
        hostname=parts.hostname or None,  # lower-cased by urlsplit
        port=parts.port,  # raises ValueError for bad ports
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
    )


def is_relative(raw: str) -> bool:
    return parse(raw).relative


def sanitize(raw: str) -> str:
    """Rebuild `raw` from scheme, hostname, path and query only."""
    p = parse(raw)
    query = f"?{p.query}" if p.query else ""

    if p.scheme:
        return f"{p.scheme}://{p.hostname or ''}{p.path}{query}"
    else:
        return f"//{p.hostname or ''}{p.path}{query}"


sanitize_url = sanitize


def is_valid_url(url: Any) -> bool:
    """True for absolute URLs with a scheme and a host."""
    if not isinstance(url, str):
        return False

    try:
        p = parse(url)
    except ValueError:
        return False

    return p.scheme != "" and p.hostname is not None


def extract_domain(url: str) -> Optional[str]:
    try:
        return parse(url).hostname
    except ValueError:
        return None


def is_subdomain(domain: str, parent: str) -> bool:
    return domain.lower().endswith("." + parent.lower())


def is_localhost(hostname: str, exact: bool = False) -> bool:
    """Classify `hostname` as local or private.

    By default this is a textual check: `localhost`, `127.0.0.1` and anything
    starting with `192.168.`, `10.` or `172.`. With `exact=True` only IP
    literals in loopback or private ranges (and `localhost`) qualify.
    """
    hostname = hostname.lower()

    if not exact:
        return hostname in LOCAL_HOSTNAMES or hostname.startswith(PRIVATE_PREFIXES)

    if hostname == "localhost":
        return True

    try:
        address = ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False

    return address.is_loopback or address.is_private


def is_private_ip(hostname: str) -> bool:
    return is_localhost(hostname)


def normalize_domain(domain: str) -> str:
    domain = domain.strip().lower()

    if domain.startswith("www."):
        domain = domain[4:]

    return domain


def validate_domain_list(domains: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split `domains` into (valid, invalid). Valid domains are normalized."""
    valid, invalid = [], []

    for domain in domains:
        if is_valid_domain(domain):
            valid.append(normalize_domain(domain))
        else:
            invalid.append(domain)

    return valid, invalid


def domain_matcher(
    allowed_domains: Iterable[str], allow_subdomains: bool = False
) -> Callable[[str], bool]:
    normalized = [normalize_domain(d) for d in allowed_domains]

    def matches(domain: str) -> bool:
        domain = normalize_domain(domain)

        for allowed in normalized:
            if domain == allowed:
                return True

            if allow_subdomains and is_subdomain(domain, allowed):
                return True

        return False

    return matches
