import pytest

from kyc_gateway.errors import (
    DisallowedHost,
    DisallowedScheme,
    InvalidUrl,
    MissingUrl,
    RemoteUrlError,
)
from kyc_gateway.images.url_guard import (
    assert_allowed_remote_url,
    guard_remote_url,
    normalize_remote_url,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://res.cloudinary.com/demo/image/upload/x.jpg",
        "https://foo.cloudinary.com/x.jpg",
        "https://RES.Cloudinary.COM/x.jpg",
        "https://res.cloudinary.com:443/x.jpg",
    ],
)
def test_allowed_urls(url):
    assert_allowed_remote_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "http://res.cloudinary.com/x.jpg",
        "http://evil.com/x.jpg",
        "ftp://res.cloudinary.com/x.jpg",
        "file:///etc/passwd",
    ],
)
def test_non_https_scheme_is_rejected(url):
    with pytest.raises(DisallowedScheme):
        assert_allowed_remote_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "https://evil.com/x.jpg",
        "https://cloudinary.com.evil.com/x.jpg",
        "https://evilcloudinary.com/x.jpg",
        "https://127.0.0.1/x.jpg",
        "https://res.cloudinary.com@evil.com/x.jpg",
    ],
)
def test_untrusted_host_is_rejected(url):
    with pytest.raises(DisallowedHost):
        assert_allowed_remote_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "not a url",
        "res.cloudinary.com/x.jpg",
        "https://",
        "https://res.cloudinary.com:notaport/x.jpg",
        "https://[::1/x.jpg",
    ],
)
def test_unparseable_url_is_invalid(url):
    with pytest.raises(InvalidUrl):
        assert_allowed_remote_url(url)


def test_normalize_remote_url_strips_all_whitespace():
    assert (
        normalize_remote_url("  https://res.cloudinary.com/a b\n/c.jpg ")
        == "https://res.cloudinary.com/ab/c.jpg"
    )
    assert normalize_remote_url(None) is None
    assert normalize_remote_url("   ") is None


@pytest.mark.parametrize("value", [None, "", "  \n "])
def test_guard_missing_url(value):
    with pytest.raises(MissingUrl) as excinfo:
        guard_remote_url(value, "CNIC image")
    assert str(excinfo.value) == "Missing CNIC image URL"


def test_guard_returns_normalized_url():
    url = guard_remote_url(" https://res.cloudinary.com/x .jpg ", "shop image")
    assert url == "https://res.cloudinary.com/x.jpg"


def test_guard_errors_name_the_label():
    with pytest.raises(DisallowedScheme) as excinfo:
        guard_remote_url("http://res.cloudinary.com/x.jpg", "selfie image")
    assert "selfie image" in str(excinfo.value)
    assert "Disallowed scheme" in str(excinfo.value)

    with pytest.raises(DisallowedHost) as excinfo:
        guard_remote_url("https://evil.com/x.jpg", "CNIC image")
    assert "CNIC image" in str(excinfo.value)
    assert isinstance(excinfo.value, RemoteUrlError)
