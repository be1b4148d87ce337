"""Unit tests for brand URL canonicalization."""

from __future__ import annotations

import pytest

from src.utils.domain import canonicalize_domain, is_valid_domain


class TestCanonicalizeDomain:
    @pytest.mark.parametrize(
        "raw",
        [
            "example.com",
            "Example.COM",
            "  example.com  ",
            "https://example.com",
            "http://example.com/",
            "https://WWW.Example.com/shop?x=1",
            "www.example.com#pricing",
            "example.com?ref=ad",
            "HTTPS://www.EXAMPLE.com/a/b/c",
        ],
    )
    def test_variants_collapse_to_one_host(self, raw: str) -> None:
        assert canonicalize_domain(raw) == "example.com"

    def test_keeps_subdomains_other_than_www(self) -> None:
        assert canonicalize_domain("https://shop.example.com/") == "shop.example.com"

    def test_strips_only_one_www_label(self) -> None:
        assert canonicalize_domain("www.www.example.com") == "www.example.com"

    def test_keeps_port(self) -> None:
        assert canonicalize_domain("http://localhost:8080/x") == "localhost:8080"

    @pytest.mark.parametrize("raw", ["", "   ", None, "https://", "https:///", "www.", "/path"])
    def test_empty_host_is_invalid_marker(self, raw: str | None) -> None:
        assert canonicalize_domain(raw) == ""

    def test_does_not_touch_the_network(self) -> None:
        # A host that cannot resolve still canonicalizes.
        assert canonicalize_domain("https://no-such-host.invalid/") == "no-such-host.invalid"


class TestIsValidDomain:
    def test_plain_host_is_valid(self) -> None:
        assert is_valid_domain("example.com") is True

    def test_empty_is_invalid(self) -> None:
        assert is_valid_domain("") is False

    def test_only_empty_is_invalid(self) -> None:
        # No host syntax checks beyond emptiness.
        assert is_valid_domain(canonicalize_domain("exa mple.com")) is True
        assert is_valid_domain(canonicalize_domain("https:///path")) is False
