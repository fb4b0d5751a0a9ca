import pytest

from httptunnel.core.telemetry import Telemetry, get_telemetry
from httptunnel.domain.tunnel import ProxyEndpoint, TargetAddress, establish_tunnel


def test_records_are_capped_but_totals_are_kept():
    telemetry = Telemetry(capacity=3)

    for value in range(10):
        telemetry.record_metric("tunnel.handshake_seconds", float(value))
        telemetry.record_event("tunnel.failed", {"n": value})

    assert [metric.value for metric in telemetry.get_metrics()] == [7.0, 8.0, 9.0]
    assert [event.metadata["n"] for event in telemetry.get_events()] == [7, 8, 9]
    summary = telemetry.get_summary("tunnel.handshake_seconds")
    assert summary.count == 10
    assert summary.minimum == 0.0
    assert summary.maximum == 9.0
    assert summary.mean == pytest.approx(4.5)
    assert telemetry.event_counts() == {"tunnel.failed": 10}


def test_summary_is_a_snapshot():
    telemetry = Telemetry()
    telemetry.record_metric("m", 1.0)

    snapshot = telemetry.get_summary("m")
    telemetry.record_metric("m", 2.0)

    assert snapshot.count == 1
    assert telemetry.get_summary("m").count == 2
    assert telemetry.get_summary("unknown") is None


def test_clear_resets_totals():
    telemetry = Telemetry()
    telemetry.record_metric("m", 1.0)
    telemetry.record_event("e")

    telemetry.clear()

    assert telemetry.get_metrics() == []
    assert telemetry.event_counts() == {}
    assert telemetry.get_summary("m") is None


def test_many_attempts_stay_bounded(fake_proxy, monkeypatch):
    bounded = Telemetry(capacity=5)
    monkeypatch.setattr("httptunnel.domain.tunnel.service.telemetry", bounded)
    target = TargetAddress("ssh.internal", 22)
    proxy = ProxyEndpoint("proxy.local", 3128)

    for _ in range(20):
        denied = fake_proxy(b"HTTP/1.1 403 Forbidden\r\n\r\n")
        assert not establish_tunnel(target, proxy, connector=denied).ok

    assert len(bounded.get_events()) == 5
    assert len(bounded.get_metrics()) == 5
    assert bounded.event_counts() == {"tunnel.failed": 20}
    assert bounded.get_summary("tunnel.handshake_seconds").count == 20


def test_package_exposes_the_global_collector():
    import httptunnel

    assert httptunnel.get_telemetry() is get_telemetry()
