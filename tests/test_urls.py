import pytest

from redirectguard.urls import (
    domain_matcher,
    extract_domain,
    is_localhost,
    is_private_ip,
    is_relative,
    is_subdomain,
    is_valid_url,
    normalize_domain,
    parse,
    sanitize,
    validate_domain_list,
)


def test_parse_absolute():
    p = parse("https://Example.com:8443/a/b?x=1#frag")

    assert p.scheme == "https"
    assert p.hostname == "example.com"
    assert p.port == 8443
    assert p.path == "/a/b"
    assert p.query == "x=1"
    assert p.fragment == "frag"
    assert not p.relative


def test_parse_relative():
    assert parse("/dashboard").relative
    assert parse("dashboard?tab=2").relative
    assert parse("?next=1").relative
    assert parse("/dashboard").hostname is None


def test_protocol_relative_is_absolute():
    p = parse("//evil.com/steal")

    assert not p.relative
    assert p.hostname == "evil.com"
    assert not is_relative("//evil.com")


def test_scheme_without_host_is_absolute():
    p = parse("javascript:alert(1)")

    assert not p.relative
    assert p.hostname is None


def test_parse_malformed():
    with pytest.raises(ValueError):
        parse("http://[::1")

    with pytest.raises(ValueError):
        parse("http://example.com:notaport/")


def test_backslash_reads_as_slash_in_special_schemes():
    assert parse("https://evil.com\\@example.com/").hostname == "evil.com"
    assert parse("https://evil.com\\.example.com/").hostname == "evil.com"
    assert parse("HTTPS:\\\\evil.com").hostname == "evil.com"
    assert parse("https://example.com/a\\b").path == "/a/b"


def test_leading_slash_backslash_is_protocol_relative():
    p = parse("/\\evil.com")

    assert not p.relative
    assert p.hostname == "evil.com"
    assert not is_relative("\\\\evil.com")


def test_backslash_in_relative_path_is_kept():
    assert parse("docs\\index").path == "docs\\index"


def test_backslash_in_network_location_is_malformed():
    with pytest.raises(ValueError):
        parse("myapp://evil.com\\@example.com")


def test_sanitize_drops_fragment_and_credentials():
    assert sanitize("https://example.com/p?q=1#top") == "https://example.com/p?q=1"
    assert sanitize("https://user:pw@example.com/x") == "https://example.com/x"
    assert sanitize("https://EXAMPLE.com") == "https://example.com"


def test_is_valid_url():
    assert is_valid_url("https://example.com")
    assert not is_valid_url("/relative")
    assert not is_valid_url("mailto:someone")
    assert not is_valid_url(None)
    assert not is_valid_url("http://[::1")


def test_extract_domain():
    assert extract_domain("https://Sub.Example.com/x") == "sub.example.com"
    assert extract_domain("/relative") is None
    assert extract_domain("http://[::1") is None


def test_is_subdomain():
    assert is_subdomain("a.example.com", "example.com")
    assert is_subdomain("A.B.EXAMPLE.com", "example.COM")
    assert not is_subdomain("example.com", "example.com")
    assert not is_subdomain("evil-example.com", "example.com")


def test_is_localhost_prefix_heuristic():
    assert is_localhost("localhost")
    assert is_localhost("LOCALHOST")
    assert is_localhost("127.0.0.1")
    assert is_localhost("192.168.1.1")
    assert is_localhost("10.0.0.8")
    assert is_localhost("172.99.1.1")  # outside 172.16/12, still matches
    assert is_localhost("10.example.com")  # textual match
    assert not is_localhost("example.com")
    assert not is_localhost("127.0.0.2")
    assert is_private_ip("10.1.2.3")


def test_is_localhost_exact():
    assert is_localhost("localhost", exact=True)
    assert is_localhost("127.0.0.2", exact=True)
    assert is_localhost("172.16.0.1", exact=True)
    assert is_localhost("::1", exact=True)
    assert not is_localhost("172.99.1.1", exact=True)
    assert not is_localhost("10.example.com", exact=True)
    assert not is_localhost("8.8.8.8", exact=True)


def test_normalize_domain():
    assert normalize_domain("WWW.Example.com") == "example.com"
    assert normalize_domain(" example.com ") == "example.com"
    assert normalize_domain("wwwexample.com") == "wwwexample.com"


def test_validate_domain_list():
    valid, invalid = validate_domain_list(
        ["www.Example.com", "localhost", "trusted.org", "bad domain.com"]
    )

    assert valid == ["example.com", "trusted.org"]
    assert invalid == ["localhost", "bad domain.com"]


def test_domain_matcher():
    exact = domain_matcher(["www.example.com"])

    assert exact("example.com")
    assert exact("WWW.EXAMPLE.COM")
    assert not exact("api.example.com")

    with_subdomains = domain_matcher(["example.com"], allow_subdomains=True)

    assert with_subdomains("api.example.com")
    assert not with_subdomains("evil-example.com")
