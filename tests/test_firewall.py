from datetime import datetime

import pytest

from redirectguard import PolicyConfig, RedirectFirewall, create_default_config
from redirectguard.violations import ViolationRecorder

ALLOWED = ["example.com", "trusted-site.org", "api.myapp.com"]
LOCAL = ["http://localhost:3000", "http://127.0.0.1/", "http://192.168.1.1:3000"]


def make(**kwargs):
    return RedirectFirewall(allowed_domains=ALLOWED, **kwargs)


@pytest.mark.parametrize("url", [None, "", 0, 42, [], ["https://example.com"], {}])
def test_invalid_input_is_blocked(url):
    result = make().validate_redirect(url)

    assert result.allowed is False
    assert result.reason == "Invalid URL provided"
    assert result.kind == "invalid_input"


def test_whitelisted_domain():
    result = make().validate_redirect("https://example.com/dashboard")

    assert result.allowed
    assert result.reason is None
    assert result.sanitized_url is None
    assert result.kind is None


def test_non_whitelisted_domain():
    result = make().validate_redirect("https://malicious-site.com/steal-data")

    assert not result.allowed
    assert result.reason == "Domain malicious-site.com not allowed"
    assert result.kind == "policy_violation"


def test_domain_comparison_is_case_insensitive():
    fw = RedirectFirewall(allowed_domains=["Example.COM"])

    assert fw.validate_redirect("https://EXAMPLE.com/x").allowed
    assert fw.validate_redirect("https://example.com/x").allowed


def test_subdomains():
    strict = RedirectFirewall(allowed_domains=["example.com"])
    loose = RedirectFirewall(allowed_domains=["example.com"], allow_subdomains=True)

    assert not strict.validate_redirect("https://sub.example.com").allowed
    assert loose.validate_redirect("https://sub.example.com").allowed
    assert loose.validate_redirect("https://a.b.example.com/x").allowed
    assert not strict.validate_redirect("https://evil-example.com").allowed
    assert not loose.validate_redirect("https://evil-example.com").allowed
    assert not loose.validate_redirect("https://example.com.evil.com").allowed


def test_relative_urls():
    assert make().validate_redirect("/dashboard").allowed
    assert make().validate_redirect("settings?tab=1").allowed

    result = make(allow_relative_urls=False).validate_redirect("/dashboard")

    assert not result.allowed
    assert result.reason == "Relative URLs not allowed"


def test_protocol_relative_url_is_checked_against_whitelist():
    fw = make()

    assert not fw.validate_redirect("//evil.com/x").allowed
    assert fw.validate_redirect("//example.com/x").allowed


def test_backslash_host_tricks_are_blocked():
    result = make().validate_redirect("https://evil.com\\@example.com/")

    assert not result.allowed
    assert result.reason == "Domain evil.com not allowed"

    result = make(allow_subdomains=True).validate_redirect(
        "https://evil.com\\.example.com/"
    )

    assert not result.allowed
    assert result.reason == "Domain evil.com not allowed"

    result = make().validate_redirect("/\\evil.com")

    assert not result.allowed
    assert result.reason == "Domain evil.com not allowed"


def test_backslash_in_non_special_authority_is_malformed():
    result = make().validate_redirect("myapp://evil.com\\@example.com")

    assert not result.allowed
    assert result.kind == "malformed_url"


def test_localhost():
    fw = make()

    for url in LOCAL:
        result = fw.validate_redirect(url)

        assert not result.allowed
        assert result.reason == "Localhost not allowed"

    fw = make(allow_localhost=True)

    for url in LOCAL:
        assert fw.validate_redirect(url).allowed


def test_localhost_textual_prefix_and_exact_ranges():
    heuristic = make(allow_localhost=False)
    exact = make(exact_private_ranges=True)

    assert heuristic.validate_redirect("https://10.example.com").reason == (
        "Localhost not allowed"
    )
    assert exact.validate_redirect("https://10.example.com").reason == (
        "Domain 10.example.com not allowed"
    )
    assert exact.validate_redirect("http://172.16.5.4/").reason == (
        "Localhost not allowed"
    )


def test_no_domain():
    result = make().validate_redirect("javascript:alert(document.cookie)")

    assert not result.allowed
    assert result.reason == "No domain found in URL"

    assert make().validate_redirect("http:///nohost").reason == "No domain found in URL"


def test_malformed():
    result = make().validate_redirect("https://[::1/x")

    assert not result.allowed
    assert result.reason == "Malformed URL"
    assert result.kind == "malformed_url"


def test_custom_validator_can_block_whitelisted_domain():
    fw = RedirectFirewall(
        allowed_domains=["example.com", "secure.example.com"],
        custom_validator=lambda url: "secure" in url,
    )

    assert fw.validate_redirect("https://secure.example.com").allowed

    result = fw.validate_redirect("https://example.com")

    assert not result.allowed
    assert result.reason == "Failed custom validation"


def test_custom_validator_does_not_bypass_pipeline():
    calls = []

    def validator(url):
        calls.append(url)
        return True

    fw = make(custom_validator=validator)
    result = fw.validate_redirect("https://evil.com")

    assert calls == ["https://evil.com"]
    assert not result.allowed
    assert result.reason == "Domain evil.com not allowed"


def test_custom_validator_runs_before_relative_check():
    fw = make(custom_validator=lambda url: False)

    assert fw.validate_redirect("/dashboard").reason == "Failed custom validation"


def test_strict_mode_sanitizes():
    fw = make(strict_mode=True)
    result = fw.validate_redirect("https://user:pw@example.com/a?b=1#frag")

    assert result.allowed
    assert result.sanitized_url == "https://example.com/a?b=1"


def test_strict_mode_leaves_relative_and_blocked_unsanitized():
    fw = make(strict_mode=True, allow_localhost=True)

    assert fw.validate_redirect("/dashboard").sanitized_url is None
    assert fw.validate_redirect("http://localhost/x#y").sanitized_url is None
    assert fw.validate_redirect("https://evil.com/#x").sanitized_url is None


def test_violations_are_logged():
    fw = make()
    fw.validate_redirect("https://malicious-site.com")

    violations = fw.get_violations()

    assert len(violations) == 1
    assert violations[0].original_url == "https://malicious-site.com"
    assert violations[0].reason == "Domain malicious-site.com not in whitelist"
    assert isinstance(violations[0].timestamp, datetime)
    assert violations[0].timestamp.tzinfo is not None


def test_only_whitelist_mismatches_are_logged():
    fw = make(allow_relative_urls=False, custom_validator=lambda u: "nope" not in u)

    fw.validate_redirect("")
    fw.validate_redirect("/relative")
    fw.validate_redirect("http://localhost")
    fw.validate_redirect("https://nope.com")
    fw.validate_redirect("mailto:someone@example.com")

    assert fw.get_violations() == []

    fw.validate_redirect("https://evil.com")
    fw.validate_redirect("https://evil.org")

    assert [v.original_url for v in fw.get_violations()] == [
        "https://evil.com",
        "https://evil.org",
    ]


def test_violation_client_details():
    fw = make()
    fw.validate_redirect("https://evil.com", user_agent="pytest", ip="203.0.113.9")

    (violation,) = fw.get_violations()

    assert violation.user_agent == "pytest"
    assert violation.ip == "203.0.113.9"


def test_clear_violations():
    fw = make()
    fw.validate_redirect("https://malicious-site.com")

    assert len(fw.get_violations()) == 1

    fw.clear_violations()

    assert fw.get_violations() == []


def test_disabling_logging_stops_new_entries():
    fw = make()
    fw.validate_redirect("https://evil.com")
    fw.update_config(log_violations=False)
    result = fw.validate_redirect("https://evil.org")

    assert not result.allowed
    assert len(fw.get_violations()) == 1


def test_get_violations_returns_copy():
    fw = make()
    fw.validate_redirect("https://evil.com")

    violations = fw.get_violations()
    violations.clear()

    assert len(fw.get_violations()) == 1


def test_recorder_failure_does_not_prevent_decision():
    class BrokenRecorder(ViolationRecorder):
        def record(self, violation):
            raise RuntimeError("disk full")

    fw = RedirectFirewall(
        PolicyConfig(allowed_domains=("example.com",)), BrokenRecorder()
    )
    result = fw.validate_redirect("https://evil.com")

    assert not result.allowed
    assert result.reason == "Domain evil.com not allowed"


def test_update_config():
    fw = make()
    fw.update_config(allow_localhost=True)

    assert fw.validate_redirect("http://localhost:3000").allowed
    assert fw.config.allow_localhost
    assert fw.get_allowed_domains() == ALLOWED


def test_update_config_replaces_snapshot():
    fw = make()
    before = fw.config

    fw.update_config(allowed_domains=["other.com"])

    assert before.allowed_domains == tuple(ALLOWED)
    assert fw.get_allowed_domains() == ["other.com"]
    assert not fw.validate_redirect("https://example.com").allowed


def test_update_config_rejects_unknown_keys():
    with pytest.raises(TypeError, match="allowSubdomains"):
        make().update_config(allowSubdomains=True)


def test_decision_is_not_affected_by_later_updates():
    fw = make()
    result = fw.validate_redirect("http://localhost")

    fw.update_config(allow_localhost=True)

    assert not result.allowed
    assert fw.validate_redirect("http://localhost").allowed


def test_get_allowed_domains_returns_copy():
    fw = make()
    domains = fw.get_allowed_domains()

    assert domains == ALLOWED

    domains.append("evil.com")
    domains[0] = "evil.org"

    assert fw.get_allowed_domains() == ALLOWED
    assert not fw.validate_redirect("https://evil.com").allowed


def test_config_and_kwargs_are_exclusive():
    with pytest.raises(TypeError):
        RedirectFirewall(PolicyConfig(), allow_localhost=True)


def test_unknown_keyword_arguments_are_rejected():
    with pytest.raises(TypeError, match="allowedDomains"):
        RedirectFirewall(allowedDomains=["example.com"])


def test_default_config():
    config = create_default_config(["example.com"])

    assert config.allowed_domains == ("example.com",)
    assert not config.allow_subdomains
    assert not config.allow_localhost
    assert config.allow_relative_urls
    assert not config.strict_mode
    assert config.log_violations
    assert config.custom_validator is None


def test_end_to_end():
    fw = RedirectFirewall(
        PolicyConfig(
            allowed_domains=("example.com",),
            allow_subdomains=True,
            allow_localhost=False,
        )
    )

    assert fw.validate_redirect("https://sub.example.com/x").allowed

    result = fw.validate_redirect("http://localhost:3000")

    assert not result.allowed
    assert result.reason == "Localhost not allowed"

    result = fw.validate_redirect("https://evil.com")

    assert not result.allowed
    assert result.reason == "Domain evil.com not allowed"

    violations = fw.get_violations()

    assert len(violations) == 1
    assert violations[0].original_url == "https://evil.com"
