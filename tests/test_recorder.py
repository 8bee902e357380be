"""Tests for event routing, label resolution and counter updates."""

from __future__ import annotations

import logging

import pytest

from iam_metrics.events import AdminEvent, Aggregator, EventType, MetricEventRecorder, RealmNameCache, UserEvent
from iam_metrics.events import catalog
from iam_metrics.events.schemas import OperationType, ResourceType
from iam_metrics.lib.metrics import InMemoryMetricsRegistry
from iam_metrics.lib.realm_client import RealmLookupError

DEMO = "0b7e-demo"

SPECIALIZED = {
    EventType.LOGIN: ("auth_user_login_success_total", "auth_user_login_attempt_total"),
    EventType.LOGIN_ERROR: ("auth_user_login_error_total", "auth_user_login_attempt_total"),
    EventType.LOGOUT: ("auth_user_logout_success_total",),
    EventType.LOGOUT_ERROR: ("auth_user_logout_error_total",),
    EventType.CLIENT_LOGIN: ("auth_client_login_success_total", "auth_client_login_attempt_total"),
    EventType.CLIENT_LOGIN_ERROR: ("auth_client_login_error_total", "auth_client_login_attempt_total"),
    EventType.REGISTER: ("auth_user_register_success_total", "auth_user_register_attempt_total"),
    EventType.REGISTER_ERROR: ("auth_user_register_error_total", "auth_user_register_attempt_total"),
    EventType.REFRESH_TOKEN: ("oauth_token_refresh_success_total", "oauth_token_refresh_attempt_total"),
    EventType.REFRESH_TOKEN_ERROR: ("oauth_token_refresh_error_total", "oauth_token_refresh_attempt_total"),
    EventType.CODE_TO_TOKEN: ("oauth_code_to_token_success_total", "oauth_code_to_token_attempt_total"),
    EventType.CODE_TO_TOKEN_ERROR: ("oauth_code_to_token_error_total", "oauth_code_to_token_attempt_total"),
    EventType.USER_INFO_REQUEST: ("oauth_userinfo_request_success_total", "oauth_userinfo_request_attempt_total"),
    EventType.USER_INFO_REQUEST_ERROR: (
        "oauth_userinfo_request_error_total",
        "oauth_userinfo_request_attempt_total",
    ),
    EventType.TOKEN_EXCHANGE: ("oauth_token_exchange_success_total", "oauth_token_exchange_attempt_total"),
    EventType.TOKEN_EXCHANGE_ERROR: ("oauth_token_exchange_error_total", "oauth_token_exchange_attempt_total"),
}

FLOWS = [
    (EventType.LOGIN, EventType.LOGIN_ERROR, "auth_user_login"),
    (EventType.CLIENT_LOGIN, EventType.CLIENT_LOGIN_ERROR, "auth_client_login"),
    (EventType.REGISTER, EventType.REGISTER_ERROR, "auth_user_register"),
    (EventType.REFRESH_TOKEN, EventType.REFRESH_TOKEN_ERROR, "oauth_token_refresh"),
    (EventType.CODE_TO_TOKEN, EventType.CODE_TO_TOKEN_ERROR, "oauth_code_to_token"),
    (EventType.USER_INFO_REQUEST, EventType.USER_INFO_REQUEST_ERROR, "oauth_userinfo_request"),
    (EventType.TOKEN_EXCHANGE, EventType.TOKEN_EXCHANGE_ERROR, "oauth_token_exchange"),
]


def _event(event_type: EventType, **fields) -> UserEvent:
    fields.setdefault("realm_id", DEMO)
    fields.setdefault("client_id", "app1")
    if event_type.value.endswith("_ERROR"):
        fields.setdefault("error", "invalid_user_credentials")
    return UserEvent(type=event_type, **fields)


def test_handler_table_covers_exactly_the_monitored_flows(recorder: MetricEventRecorder) -> None:
    assert recorder.handled_event_types == frozenset(SPECIALIZED)


@pytest.mark.parametrize("event_type", list(SPECIALIZED))
def test_specialized_events_skip_generic_counter(
    event_type: EventType, recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry
) -> None:
    assert recorder.record_event(_event(event_type)) is True

    assert registry.total("user_event") == 0
    touched = {entry["name"] for entry in registry.snapshot()}
    assert touched == set(SPECIALIZED[event_type])
    for name in SPECIALIZED[event_type]:
        assert registry.total(name) == 1


@pytest.mark.parametrize("event_type", [t for t in EventType if t not in SPECIALIZED])
def test_unmapped_events_hit_generic_counter(
    event_type: EventType, recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry
) -> None:
    assert recorder.record_event(_event(event_type)) is True

    assert registry.snapshot() == [
        {"name": "user_event", "labels": {"event_type": event_type.value, "realm": "demo"}, "value": 1.0}
    ]


def test_lookup_handler_returns_generic_fallback_for_unmapped_type(recorder: MetricEventRecorder) -> None:
    generic = recorder.lookup_handler(_event(EventType.UPDATE_PASSWORD))
    login = recorder.lookup_handler(_event(EventType.LOGIN))

    assert generic == recorder.lookup_handler(_event(EventType.VERIFY_EMAIL))
    assert login != generic


def test_login_event_end_to_end(recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry) -> None:
    recorder.record_event(UserEvent(type=EventType.LOGIN, realm_id=DEMO, client_id="app1"))

    labels = {"realm": "demo", "client_id": "app1", "provider": "@realm"}
    assert registry.value("auth_user_login_success_total", labels) == 1
    assert registry.value("auth_user_login_attempt_total", labels) == 1
    assert registry.total("auth_user_login_error_total") == 0


def test_admin_event_end_to_end(recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry) -> None:
    event = AdminEvent(operation_type=OperationType.CREATE, resource_type=ResourceType.USER, realm_id=DEMO)

    assert recorder.record_admin_event(event, include_representation=True) is True

    assert registry.snapshot() == [
        {
            "name": "admin_event",
            "labels": {"operation_type": "CREATE", "realm": "demo", "resource": "USER"},
            "value": 1.0,
        }
    ]


@pytest.mark.parametrize("success_type, error_type, flow", FLOWS)
def test_attempts_equal_successes_plus_errors(
    success_type: EventType,
    error_type: EventType,
    flow: str,
    recorder: MetricEventRecorder,
    registry: InMemoryMetricsRegistry,
) -> None:
    sequence = [success_type, error_type, success_type, success_type, error_type, success_type]
    for event_type in sequence:
        recorder.record_event(_event(event_type))

    success = registry.total(f"{flow}_success_total")
    error = registry.total(f"{flow}_error_total")
    attempt = registry.total(f"{flow}_attempt_total")
    assert (success, error) == (4, 2)
    assert attempt == success + error


def test_logout_has_no_attempt_counter(recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry) -> None:
    recorder.record_event(_event(EventType.LOGOUT))
    recorder.record_event(_event(EventType.LOGOUT_ERROR))

    names = {entry["name"] for entry in registry.snapshot()}
    assert names == {"auth_user_logout_success_total", "auth_user_logout_error_total"}


def test_logout_success_labels_omit_client(recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry) -> None:
    recorder.record_event(_event(EventType.LOGOUT, details={"identity_provider": "github"}))

    assert registry.value("auth_user_logout_success_total", {"realm": "demo", "provider": "github"}) == 1


def test_missing_client_id_is_labeled_missing(recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry) -> None:
    recorder.record_event(UserEvent(type=EventType.CLIENT_LOGIN, realm_id=DEMO))

    labels = {"realm": "demo", "client_id": "missing"}
    assert registry.value("auth_client_login_success_total", labels) == 1


def test_identity_provider_detail_becomes_provider_label(
    recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry
) -> None:
    recorder.record_event(_event(EventType.LOGIN, details={"identity_provider": "google"}))
    recorder.record_event(_event(EventType.LOGIN, details={"auth_method": "openid-connect"}))

    series = registry.series("auth_user_login_success_total")
    providers = sorted(key.label_dict()["provider"] for key in series)
    assert providers == ["@realm", "google"]


def test_error_label_is_taken_from_event(recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry) -> None:
    recorder.record_event(_event(EventType.TOKEN_EXCHANGE_ERROR, error="invalid_token"))

    labels = {"realm": "demo", "client_id": "app1", "error": "invalid_token"}
    assert registry.value("oauth_token_exchange_error_total", labels) == 1
    assert registry.value("oauth_token_exchange_attempt_total", labels) == 1


def test_event_without_realm_is_labeled_missing_without_lookup(
    recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry, realm_lookup
) -> None:
    recorder.record_event(UserEvent(type=EventType.REFRESH_TOKEN, client_id="app1"))

    assert realm_lookup.calls == []
    assert registry.value("oauth_token_refresh_success_total", {"realm": "missing", "client_id": "app1"}) == 1


def test_realm_is_resolved_once_across_events(recorder: MetricEventRecorder, realm_lookup) -> None:
    for _ in range(5):
        recorder.record_event(_event(EventType.LOGIN))
        recorder.record_admin_event(
            AdminEvent(operation_type=OperationType.UPDATE, resource_type=ResourceType.CLIENT, realm_id=DEMO)
        )

    assert realm_lookup.calls == [DEMO]


def test_missing_generic_counter_logs_and_drops(
    registry: InMemoryMetricsRegistry, realm_lookup, caplog: pytest.LogCaptureFixture
) -> None:
    recorder = MetricEventRecorder(Aggregator(registry, generic=()), RealmNameCache(realm_lookup))

    with caplog.at_level(logging.WARNING):
        user_recorded = recorder.record_event(_event(EventType.VERIFY_EMAIL))
        admin_recorded = recorder.record_admin_event(
            AdminEvent(operation_type=OperationType.DELETE, resource_type=ResourceType.GROUP, realm_id=DEMO)
        )

    assert (user_recorded, admin_recorded) == (False, False)
    assert registry.snapshot() == []
    warnings = [record for record in caplog.records if record.getMessage() == "metrics.counter.missing"]
    assert [record.counter for record in warnings] == ["user_event", "admin_event"]
    assert warnings[1].resource_type == "GROUP"
    assert warnings[1].realm == "demo"


def test_realm_lookup_failure_is_skipped_by_default(
    recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        recorded = recorder.record_event(_event(EventType.LOGIN, realm_id="deleted-realm"))

    assert recorded is False
    assert registry.snapshot() == []
    assert any(record.getMessage() == "metrics.realm.lookup_failed" for record in caplog.records)


def test_realm_lookup_failure_propagates_when_configured(registry: InMemoryMetricsRegistry, realm_lookup) -> None:
    recorder = MetricEventRecorder(Aggregator(registry), RealmNameCache(realm_lookup), on_realm_failure="raise")

    with pytest.raises(RealmLookupError):
        recorder.record_event(_event(EventType.LOGIN_ERROR, realm_id="deleted-realm"))
    with pytest.raises(RealmLookupError):
        recorder.record_admin_event(
            AdminEvent(operation_type=OperationType.ACTION, resource_type=ResourceType.USER, realm_id="deleted-realm")
        )

    assert registry.snapshot() == []


def test_generic_counters_are_declared_up_front() -> None:
    declared: list[str] = []

    class RecordingRegistry(InMemoryMetricsRegistry):
        def declare(self, name: str) -> None:
            declared.append(name)
            super().declare(name)

    aggregator = Aggregator(RecordingRegistry())

    assert declared == [catalog.USER_EVENT.name, catalog.ADMIN_EVENT.name]
    assert aggregator.is_registered("user_event")
    assert not aggregator.is_registered("auth_user_login_success_total")


def test_error_event_without_error_code_is_labeled_missing(
    recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry
) -> None:
    assert recorder.record_event(UserEvent(type=EventType.LOGIN_ERROR, realm_id=DEMO)) is True

    labels = {"realm": "demo", "client_id": "missing", "error": "missing", "provider": "@realm"}
    assert registry.value("auth_user_login_error_total", labels) == 1
    assert registry.value("auth_user_login_attempt_total", labels) == 1


def test_error_event_without_realm_or_client_uses_missing_labels(
    recorder: MetricEventRecorder, registry: InMemoryMetricsRegistry, realm_lookup
) -> None:
    recorder.record_event(UserEvent(type=EventType.USER_INFO_REQUEST_ERROR, error="invalid_token"))
    recorder.record_event(UserEvent(type=EventType.LOGOUT_ERROR, realm_id=DEMO, error=""))

    assert realm_lookup.calls == [DEMO]
    userinfo_labels = {"realm": "missing", "client_id": "missing", "error": "invalid_token"}
    assert registry.value("oauth_userinfo_request_error_total", userinfo_labels) == 1
    assert registry.value("oauth_userinfo_request_attempt_total", userinfo_labels) == 1
    logout_labels = {"realm": "demo", "provider": "@realm", "client_id": "missing", "error": "missing"}
    assert registry.value("auth_user_logout_error_total", logout_labels) == 1
