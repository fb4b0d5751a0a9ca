import pytest

from httptunnel.core.exceptions import ConfigError, TunnelError
from httptunnel.domain.tunnel import Failed, FailureReason, ProxyEndpoint, TargetAddress
from httptunnel.domain.tunnel.models import parse_authority, split_authority


@pytest.mark.parametrize("value,expected", [
    ("example.com:22", ("example.com", 22)),
    ("10.0.0.1:3128", ("10.0.0.1", 3128)),
    ("[::1]:8080", ("::1", 8080)),
    (" host:1 ", ("host", 1)),
])
def test_parse_authority(value, expected):
    assert parse_authority(value) == expected


@pytest.mark.parametrize("value,expected", [
    ("proxy.local", ("proxy.local", None)),
    ("[fe80::1]", ("fe80::1", None)),
    ("proxy.local:3128", ("proxy.local", 3128)),
])
def test_split_authority(value, expected):
    assert split_authority(value) == expected


def test_parse_authority_default_port():
    assert parse_authority("proxy.local", default_port=80) == ("proxy.local", 80)


@pytest.mark.parametrize("value", ["host", ":22", "host:abc", "host:0", "host:65536", "[::1", "[::1]x", "::1"])
def test_parse_authority_rejects(value):
    with pytest.raises(ConfigError):
        parse_authority(value)


def test_target_address_str():
    assert str(TargetAddress("example.com", 22)) == "example.com:22"
    assert str(TargetAddress("::1", 22)) == "[::1]:22"
    assert TargetAddress.parse("[::1]:22") == TargetAddress("::1", 22)


def test_proxy_endpoint_hides_credential():
    proxy = ProxyEndpoint("proxy.local", 3128, credential="alice:s3cret")

    assert "s3cret" not in repr(proxy)
    assert str(proxy) == "proxy.local:3128"
    assert proxy.address == ("proxy.local", 3128)


@pytest.mark.parametrize("port", [0, 65536, True, "80"])
def test_proxy_endpoint_rejects_bad_port(port):
    with pytest.raises(ConfigError):
        ProxyEndpoint("proxy.local", port).validate()


def test_failed_outcome():
    failed = Failed(FailureReason.PROXY_AUTH_REQUIRED, status_line="HTTP/1.1 407 Proxy Authentication Required")

    assert not failed.ok
    assert str(failed) == "proxy_auth_required: HTTP/1.1 407 Proxy Authentication Required"
    assert "credentials" in failed.hint

    with pytest.raises(TunnelError) as excinfo:
        failed.raise_for_failure()
    assert excinfo.value.outcome is failed
    assert excinfo.value.reason is FailureReason.PROXY_AUTH_REQUIRED


def test_failed_str_with_detail():
    failed = Failed(FailureReason.TRANSPORT_ERROR, detail="[Errno 104] Connection reset by peer")

    assert str(failed) == "transport_error: [Errno 104] Connection reset by peer"
