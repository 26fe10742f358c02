# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2025.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
The policy evaluator. `RedirectFirewall.validate_redirect` runs an ordered
pipeline in which the first matching rule decides:

1. empty or non-string input
2. custom validator (may only block, never short-circuit to allowed)
3. malformed URL
4. relative URL
5. localhost and private addresses
6. missing hostname
7. allowed domains (exact or, optionally, subdomain match)

Only a mismatch in step 7 is recorded as a violation.
"""

import dataclasses
from typing import Any, Iterable, Optional

import redirectguard.deployment as d
from redirectguard.constraints import ensure
from redirectguard.types import Decision, PolicyConfig, Violation, allowed, blocked
from redirectguard.urls import is_localhost, parse, sanitize
from redirectguard.violations import ViolationRecorder


def create_default_config(allowed_domains: Iterable[str]) -> PolicyConfig:
    return PolicyConfig(allowed_domains=tuple(allowed_domains))


def ensure_policy_keys(keys: Iterable[str]) -> None:
    known = {f.name for f in dataclasses.fields(PolicyConfig)}

    for key in keys:
        ensure(key in known, TypeError, f"Unknown configuration key '{key}'")


def domain_allowed(hostname: str, config: PolicyConfig) -> bool:
    hostname = hostname.lower()

    for entry in config.allowed_domains:
        entry = entry.lower()

        if hostname == entry:
            return True

        if config.allow_subdomains and hostname.endswith("." + entry):
            return True

    return False


class RedirectFirewall:
    def __init__(
        self,
        config: Optional[PolicyConfig] = None,
        recorder: Optional[ViolationRecorder] = None,
        **kwargs: Any,
    ) -> None:
        ensure(
            config is None or not kwargs,
            TypeError,
            "Pass either a PolicyConfig or keyword arguments, not both",
        )
        ensure_policy_keys(kwargs)

        self._config = config if config is not None else PolicyConfig(**kwargs)
        self._violations = (
            recorder if recorder is not None else ViolationRecorder(d.MAX_VIOLATIONS)
        )

    @property
    def config(self) -> PolicyConfig:
        return self._config

    def validate_redirect(
        self,
        url: Any,
        *,
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> Decision:
        config = self._config  # one snapshot per call

        if not url or not isinstance(url, str):
            return blocked("Invalid URL provided", "invalid_input")

        if config.custom_validator is not None and not config.custom_validator(url):
            return blocked("Failed custom validation")

        try:
            parsed = parse(url)
        except ValueError:
            return blocked("Malformed URL", "malformed_url")

        if parsed.relative:
            if config.allow_relative_urls:
                return allowed()
            else:
                return blocked("Relative URLs not allowed")

        hostname = parsed.hostname

        if hostname and is_localhost(hostname, config.exact_private_ranges):
            if config.allow_localhost:
                return allowed()
            else:
                return blocked("Localhost not allowed")

        if not hostname:
            return blocked("No domain found in URL")

        if not domain_allowed(hostname, config):
            if config.log_violations:
                self._log_violation(
                    url, f"Domain {hostname} not in whitelist", user_agent, ip
                )

            return blocked(f"Domain {hostname} not allowed")

        if config.strict_mode:
            return allowed(sanitize(url))
        else:
            return allowed()

    def _log_violation(
        self,
        original_url: str,
        reason: str,
        user_agent: Optional[str],
        ip: Optional[str],
    ) -> None:
        try:
            self._violations.record(
                Violation(
                    original_url=original_url,
                    reason=reason,
                    user_agent=user_agent,
                    ip=ip,
                )
            )
        except Exception:
            d.LOGGER.exception(f"Could not record violation for {original_url!r}")

        d.LOGGER.warning(f"Violation: {reason} - URL: {original_url}")

    def get_violations(self) -> list[Violation]:
        return self._violations.list()

    def clear_violations(self) -> None:
        self._violations.clear()

    def update_config(self, **changes: Any) -> None:
        ensure_policy_keys(changes)

        if "allowed_domains" in changes:
            changes["allowed_domains"] = tuple(changes["allowed_domains"])

        self._config = dataclasses.replace(self._config, **changes)

        d.LOGGER.debug(f"Updated firewall configuration: {sorted(changes)}")

    def get_allowed_domains(self) -> list[str]:
        return list(self._config.allowed_domains)
