"""Tests for origin computation."""

import pytest

from portier.oidc.origin import is_bare_origin, normalize_url, tuple_origin


class TestTupleOrigin:
    """Tests for origin serialization."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://broker.example", "https://broker.example"),
            ("https://broker.example/", "https://broker.example"),
            ("https://Broker.Example/path?q#f", "https://broker.example"),
            ("HTTPS://broker.example:443", "https://broker.example"),
            ("http://localhost:8000/cb", "http://localhost:8000"),
            ("http://[::1]:8080/", "http://[::1]:8080"),
            ("https://bücher.example", "https://xn--bcher-kva.example"),
            ("https://broker.example\\path", "https://broker.example"),
            (" https://broker.example/ ", "https://broker.example"),
        ],
    )
    def test_tuple_origins(self, url: str, expected: str) -> None:
        assert tuple_origin(url) == expected

    @pytest.mark.parametrize(
        "url",
        [
            "file:///etc/passwd",
            "data:text/plain,hi",
            "mailto:a@example.com",
            "/relative/path",
            "https://",
            "https://host:99999",
            "https://bro ker.example",
            "https://bro<ker.example",
            "",
        ],
    )
    def test_no_tuple_origin(self, url: str) -> None:
        assert tuple_origin(url) is None


class TestIsBareOrigin:
    """Tests for the origin-only check."""

    @pytest.mark.parametrize(
        "url", ["https://broker.example", "https://broker.example/"]
    )
    def test_accepts(self, url: str) -> None:
        assert is_bare_origin(url)

    def test_rejects_unparseable(self) -> None:
        assert not is_bare_origin("https://bro ker.example")

    @pytest.mark.parametrize(
        "url",
        [
            "https://broker.example/path",
            "https://broker.example//",
            "https://broker.example/?",
            "https://broker.example/?a=b",
            "https://broker.example/#frag",
            "https://user:pw@broker.example/",
            "https://broker.example\\path",
        ],
    )
    def test_rejects(self, url: str) -> None:
        assert not is_bare_origin(url)


class TestNormalizeUrl:
    """Tests for root path normalization."""

    def test_adds_root_path(self) -> None:
        assert normalize_url("https://rp.example") == "https://rp.example/"

    def test_keeps_path(self) -> None:
        assert normalize_url("https://rp.example/verify?x=1") == "https://rp.example/verify?x=1"

    def test_drops_default_port(self) -> None:
        assert normalize_url("HTTPS://RP.example:443/cb") == "https://rp.example/cb"

    def test_rejects_invalid(self) -> None:
        with pytest.raises(ValueError):
            normalize_url("https://bro ker.example")
