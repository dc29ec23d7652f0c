"""
Tests for the health sweep and the one-shot run
"""

import threading
from unittest.mock import Mock

import pytest

from kube_health_monitor.config import MonitorConfig
from kube_health_monitor.errors import DiscoveryError, SweepAborted
from kube_health_monitor.health import HealthChecker, HealthSweep
from kube_health_monitor.mock import (
    InMemoryClusterReader, RecordingNotifier, running_pod, waiting_pod,
)
from kube_health_monitor.models import EvaluationResult, HealthVerdict
from kube_health_monitor.monitor import run_once


OWNERS = {"service_owner": "owner@example.com", "owner_dl": "team@example.com"}


def billing_cluster(pod):
    """kube-system (excluded) plus prod/billing with the given pod."""
    reader = InMemoryClusterReader()
    reader.add_workload("kube-system", "coredns", OWNERS)
    reader.add_pod("kube-system", "coredns", waiting_pod("coredns-1", "kube-system"))
    reader.add_workload("prod", "billing", OWNERS)
    reader.add_pod("prod", "billing", pod)
    return reader


@pytest.fixture
def config():
    return MonitorConfig(excluded_namespaces=frozenset({"kube-system"}), send_delay_seconds=0)


class TestScenarios:
    """End-to-end sweeps over small clusters."""

    def test_scenario_a_all_healthy(self, config):
        reader = billing_cluster(running_pod("billing-1", "prod"))
        notifier = RecordingNotifier()

        report = run_once(config, reader, notifier=notifier)

        assert report.sweep.failed == []
        assert report.sweep.evaluated == 1
        assert report.sweep.summary() == "All services are healthy!"
        assert notifier.attempts == []

    def test_scenario_b_crash_loop_notifies(self, config):
        reader = billing_cluster(waiting_pod("billing-1", "prod", reason="CrashLoopBackOff"))
        notifier = RecordingNotifier()

        report = run_once(config, reader, notifier=notifier)

        assert len(report.sweep.failed) == 1
        record = report.sweep.failed[0]
        assert record.workload.key == "prod/billing"
        assert "CrashLoopBackOff" in record.failure_reason
        assert record.check_time.tzinfo is not None
        assert len(notifier.attempts) == 1
        assert report.deliveries[0].success

    def test_scenario_c_missing_dl_excluded(self, config):
        reader = InMemoryClusterReader()
        reader.add_workload("prod", "reports", {"service_owner": "owner@example.com", "owner_dl": ""})
        reader.add_pod("prod", "reports", waiting_pod("reports-1", "prod"))
        notifier = RecordingNotifier()

        report = run_once(config, reader, notifier=notifier)

        assert report.sweep.discovered == 0
        assert report.sweep.failed == []
        assert reader.count("list_pods") == 0
        assert notifier.attempts == []


class TestHealthSweep:
    """Tests for HealthSweep aggregation and failure isolation."""

    @pytest.fixture
    def reader(self):
        reader = InMemoryClusterReader()
        for name in ["alpha", "bravo", "charlie", "delta"]:
            reader.add_workload("prod", name, OWNERS)
        reader.add_pod("prod", "alpha", waiting_pod("alpha-1", "prod"))
        reader.add_pod("prod", "bravo", running_pod("bravo-1", "prod"))
        reader.add_pod("prod", "charlie", waiting_pod("charlie-1", "prod", reason="ErrImagePull"))
        reader.add_pod("prod", "delta", waiting_pod("delta-1", "prod"))
        return reader

    def test_failed_in_discovery_order(self, reader, config):
        result = HealthSweep(reader, config=config).run()

        assert [r.workload.name for r in result.failed] == ["alpha", "charlie", "delta"]
        assert result.evaluated == 4
        assert result.healthy_count == 1
        assert result.summary() == "Found 3 unhealthy services"

    def test_evaluation_error_isolated(self, reader, config):
        reader.failing_selectors[("prod", "app=charlie")] = "etcd timeout"

        result = HealthSweep(reader, config=config).run()

        assert reader.count("list_pods") == 4
        assert [r.workload.name for r in result.failed] == ["alpha", "delta"]
        assert result.errors == 1
        assert result.evaluated == 3

    def test_unexpected_reader_exception_isolated(self, reader, config):
        original_list_pods = reader.list_pods

        def list_pods(namespace, label_selector):
            if label_selector == "app=charlie":
                raise RuntimeError("malformed pod payload")
            return original_list_pods(namespace, label_selector)

        reader.list_pods = list_pods

        result = HealthSweep(reader, config=config).run()

        assert [r.workload.name for r in result.failed] == ["alpha", "delta"]
        assert result.errors == 1
        assert result.evaluated == 3

    def test_checker_exception_isolated(self, reader, config):
        checker = Mock()
        checker.evaluate.side_effect = [
            EvaluationResult(verdict=HealthVerdict.failed("down")),
            ValueError("bad snapshot"),
            EvaluationResult(verdict=HealthVerdict.ok()),
            EvaluationResult(verdict=HealthVerdict.failed("down")),
        ]

        result = HealthSweep(reader, config=config, checker=checker).run()

        assert checker.evaluate.call_count == 4
        assert len(result.failed) == 2
        assert result.errors == 1

    def test_zero_pods_is_failed_record(self, config):
        reader = InMemoryClusterReader()
        reader.add_workload("prod", "ghost", OWNERS)

        result = HealthSweep(reader, config=config).run()

        assert result.failed[0].failure_reason == "No pods found for deployment"
        assert result.failed[0].pod_logs == ""

    def test_discovery_failure_is_fatal(self, reader, config):
        reader.namespace_error = "connection refused"

        with pytest.raises(DiscoveryError):
            HealthSweep(reader, config=config).run()

    def test_custom_checker(self, reader, config):
        checker = Mock(spec=HealthChecker)
        checker.evaluate.return_value = EvaluationResult(HealthVerdict.ok())

        result = HealthSweep(reader, config=config, checker=checker).run()

        assert checker.evaluate.call_count == 4
        assert result.all_healthy

    def test_cancel_event_aborts(self, reader, config):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(SweepAborted, match="cancelled"):
            HealthSweep(reader, config=config).run(cancel_event=cancel)

        assert reader.count("list_pods") == 0

    def test_deadline_aborts(self, reader, config):
        with pytest.raises(SweepAborted, match="deadline"):
            HealthSweep(reader, config=config).run(timeout_seconds=-1)

    def test_duration_recorded(self, reader, config):
        result = HealthSweep(reader, config=config).run()
        assert result.duration_ms >= 0

    def test_to_dict(self, reader, config):
        data = HealthSweep(reader, config=config).run().to_dict()

        assert data["summary"]["unhealthy"] == 3
        assert data["failed"][0]["name"] == "alpha"


class TestRunOnce:
    """Tests for run_once dispatch behaviour."""

    @pytest.fixture
    def reader(self):
        reader = InMemoryClusterReader()
        reader.add_workload("prod", "alpha", OWNERS)
        reader.add_workload("prod", "bravo", OWNERS)
        reader.add_pod("prod", "alpha", waiting_pod("alpha-1", "prod"))
        reader.add_pod("prod", "bravo", waiting_pod("bravo-1", "prod"))
        return reader

    def test_dry_run_sends_nothing(self, reader, config):
        notifier = RecordingNotifier()

        dry = run_once(config, reader, notifier=notifier, dry_run=True)
        live = run_once(config, reader, notifier=RecordingNotifier())

        assert notifier.attempts == []
        assert dry.deliveries == []
        assert [r.workload for r in dry.sweep.failed] == [r.workload for r in live.sweep.failed]
        assert [r.verdict for r in dry.sweep.failed] == [r.verdict for r in live.sweep.failed]
        assert dry.sweep.summary() == "Dry run: Found 2 unhealthy services (no emails sent)"

    def test_dry_run_without_notifier(self, reader, config):
        report = run_once(config, reader, dry_run=True)
        assert len(report.sweep.failed) == 2

    def test_notifier_required_for_live_run(self, reader, config):
        with pytest.raises(ValueError):
            run_once(config, reader)

    def test_delivery_failure_isolated(self, reader, config):
        notifier = RecordingNotifier(fail_for=["prod/alpha"])

        report = run_once(config, reader, notifier=notifier)

        assert len(notifier.attempts) == 2
        assert [r.workload.name for r in notifier.sent] == ["bravo"]
        assert report.delivery_failures == 1

    def test_aborted_sweep_sends_nothing(self, reader, config):
        notifier = RecordingNotifier()
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(SweepAborted):
            run_once(config, reader, notifier=notifier, cancel_event=cancel)

        assert notifier.attempts == []
