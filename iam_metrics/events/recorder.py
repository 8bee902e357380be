"""Translate user and admin events into labeled counter increments."""

from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Literal, Mapping

from iam_metrics.events import catalog
from iam_metrics.events.aggregator import Aggregator
from iam_metrics.events.realms import RealmNameCache
from iam_metrics.events.schemas import AdminEvent, EventType, UserEvent
from iam_metrics.lib.logger import get_logger
from iam_metrics.lib.metrics import CounterSpec
from iam_metrics.lib.realm_client import RealmLookupError

logger = get_logger(__name__)

MISSING = "missing"
LOCAL_PROVIDER = "@realm"
IDENTITY_PROVIDER_DETAIL = "identity_provider"

EventHandler = Callable[[UserEvent], bool]


class MetricEventRecorder:
    """Route events to counter handlers by event type.

    Sixteen event types have dedicated handlers; everything else lands on the
    generic ``user_event`` counter. Each handler resolves one label set and
    applies it to every counter it touches for that event.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        realms: RealmNameCache,
        *,
        on_realm_failure: Literal["skip", "raise"] = "skip",
    ) -> None:
        self._aggregator = aggregator
        self._realms = realms
        self._on_realm_failure = on_realm_failure
        self._handlers: Mapping[EventType, EventHandler] = MappingProxyType(
            {
                EventType.LOGIN: self._record_user_login,
                EventType.LOGIN_ERROR: self._record_user_login_error,
                EventType.LOGOUT: self._record_user_logout,
                EventType.LOGOUT_ERROR: self._record_user_logout_error,
                EventType.CLIENT_LOGIN: self._record_client_login,
                EventType.CLIENT_LOGIN_ERROR: self._record_client_login_error,
                EventType.REGISTER: self._record_user_registration,
                EventType.REGISTER_ERROR: self._record_user_registration_error,
                EventType.REFRESH_TOKEN: self._record_token_refresh,
                EventType.REFRESH_TOKEN_ERROR: self._record_token_refresh_error,
                EventType.CODE_TO_TOKEN: self._record_code_to_token,
                EventType.CODE_TO_TOKEN_ERROR: self._record_code_to_token_error,
                EventType.USER_INFO_REQUEST: self._record_userinfo_request,
                EventType.USER_INFO_REQUEST_ERROR: self._record_userinfo_request_error,
                EventType.TOKEN_EXCHANGE: self._record_token_exchange,
                EventType.TOKEN_EXCHANGE_ERROR: self._record_token_exchange_error,
            }
        )

    @property
    def handled_event_types(self) -> frozenset[EventType]:
        return frozenset(self._handlers)

    @property
    def aggregator(self) -> Aggregator:
        return self._aggregator

    def lookup_handler(self, event: UserEvent) -> EventHandler:
        return self._handlers.get(event.type, self._record_generic_user_event)

    def record_event(self, event: UserEvent) -> bool:
        """Count a user event. Returns ``False`` when the event was dropped."""

        handler = self.lookup_handler(event)
        try:
            return handler(event)
        except RealmLookupError as exc:
            if self._on_realm_failure == "raise":
                raise
            _log_realm_failure(exc, event.realm_id, event_type=event.type.value)
            return False

    def record_admin_event(self, event: AdminEvent, include_representation: bool = False) -> bool:
        """Count an admin event on the generic ``admin_event`` counter.

        ``include_representation`` is accepted for parity with the event
        listener contract; it has no effect on counting.
        """

        counter_name = catalog.ADMIN_EVENT.name
        try:
            realm = self._realm(event.realm_id)
        except RealmLookupError as exc:
            if self._on_realm_failure == "raise":
                raise
            _log_realm_failure(
                exc,
                event.realm_id,
                operation_type=event.operation_type.value,
                resource_type=event.resource_type.value,
            )
            return False

        if not self._aggregator.is_registered(counter_name):
            logger.warning(
                "metrics.counter.missing",
                extra={
                    "counter": counter_name,
                    "operation_type": event.operation_type.value,
                    "resource_type": event.resource_type.value,
                    "realm": realm,
                },
            )
            return False

        labels = {
            "realm": realm,
            "resource": event.resource_type.value,
            "operation_type": event.operation_type.value,
        }
        return self._count(labels, catalog.ADMIN_EVENT)

    # -------- handlers ---------

    def _record_generic_user_event(self, event: UserEvent) -> bool:
        counter_name = catalog.USER_EVENT.name
        realm = self._realm(event.realm_id)

        if not self._aggregator.is_registered(counter_name):
            logger.warning(
                "metrics.counter.missing",
                extra={"counter": counter_name, "event_type": event.type.value, "realm": realm},
            )
            return False

        labels = {"realm": realm, "event_type": event.type.value}
        return self._count(labels, catalog.USER_EVENT)

    def _record_user_login(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "client_id": _client_id(event),
            "provider": _identity_provider(event),
        }
        return self._count(labels, catalog.AUTH_USER_LOGIN_SUCCESS_TOTAL, catalog.AUTH_USER_LOGIN_ATTEMPT_TOTAL)

    def _record_user_login_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "client_id": _client_id(event),
            "error": _error(event),
            "provider": _identity_provider(event),
        }
        return self._count(labels, catalog.AUTH_USER_LOGIN_ERROR_TOTAL, catalog.AUTH_USER_LOGIN_ATTEMPT_TOTAL)

    def _record_user_logout(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "provider": _identity_provider(event),
        }
        return self._count(labels, catalog.AUTH_USER_LOGOUT_SUCCESS_TOTAL)

    def _record_user_logout_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "provider": _identity_provider(event),
            "client_id": _client_id(event),
            "error": _error(event),
        }
        return self._count(labels, catalog.AUTH_USER_LOGOUT_ERROR_TOTAL)

    def _record_client_login(self, event: UserEvent) -> bool:
        labels = {"realm": self._realm(event.realm_id), "client_id": _client_id(event)}
        return self._count(labels, catalog.AUTH_CLIENT_LOGIN_SUCCESS_TOTAL, catalog.AUTH_CLIENT_LOGIN_ATTEMPT_TOTAL)

    def _record_client_login_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "client_id": _client_id(event),
            "error": _error(event),
        }
        return self._count(labels, catalog.AUTH_CLIENT_LOGIN_ERROR_TOTAL, catalog.AUTH_CLIENT_LOGIN_ATTEMPT_TOTAL)

    def _record_user_registration(self, event: UserEvent) -> bool:
        labels = {"realm": self._realm(event.realm_id), "client_id": _client_id(event)}
        return self._count(labels, catalog.AUTH_USER_REGISTER_SUCCESS_TOTAL, catalog.AUTH_USER_REGISTER_ATTEMPT_TOTAL)

    def _record_user_registration_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "client_id": _client_id(event),
            "error": _error(event),
            "provider": _identity_provider(event),
        }
        return self._count(labels, catalog.AUTH_USER_REGISTER_ERROR_TOTAL, catalog.AUTH_USER_REGISTER_ATTEMPT_TOTAL)

    def _record_token_refresh(self, event: UserEvent) -> bool:
        labels = {"realm": self._realm(event.realm_id), "client_id": _client_id(event)}
        return self._count(labels, catalog.OAUTH_TOKEN_REFRESH_SUCCESS_TOTAL, catalog.OAUTH_TOKEN_REFRESH_ATTEMPT_TOTAL)

    def _record_token_refresh_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "client_id": _client_id(event),
            "error": _error(event),
            "provider": _identity_provider(event),
        }
        return self._count(labels, catalog.OAUTH_TOKEN_REFRESH_ERROR_TOTAL, catalog.OAUTH_TOKEN_REFRESH_ATTEMPT_TOTAL)

    def _record_code_to_token(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "provider": _identity_provider(event),
            "client_id": _client_id(event),
        }
        return self._count(labels, catalog.OAUTH_CODE_TO_TOKEN_SUCCESS_TOTAL, catalog.OAUTH_CODE_TO_TOKEN_ATTEMPT_TOTAL)

    def _record_code_to_token_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "provider": _identity_provider(event),
            "client_id": _client_id(event),
            "error": _error(event),
        }
        return self._count(labels, catalog.OAUTH_CODE_TO_TOKEN_ERROR_TOTAL, catalog.OAUTH_CODE_TO_TOKEN_ATTEMPT_TOTAL)

    def _record_userinfo_request(self, event: UserEvent) -> bool:
        labels = {"realm": self._realm(event.realm_id), "client_id": _client_id(event)}
        return self._count(
            labels, catalog.OAUTH_USERINFO_REQUEST_SUCCESS_TOTAL, catalog.OAUTH_USERINFO_REQUEST_ATTEMPT_TOTAL
        )

    def _record_userinfo_request_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "client_id": _client_id(event),
            "error": _error(event),
        }
        return self._count(
            labels, catalog.OAUTH_USERINFO_REQUEST_ERROR_TOTAL, catalog.OAUTH_USERINFO_REQUEST_ATTEMPT_TOTAL
        )

    def _record_token_exchange(self, event: UserEvent) -> bool:
        labels = {"realm": self._realm(event.realm_id), "client_id": _client_id(event)}
        return self._count(
            labels, catalog.OAUTH_TOKEN_EXCHANGE_SUCCESS_TOTAL, catalog.OAUTH_TOKEN_EXCHANGE_ATTEMPT_TOTAL
        )

    def _record_token_exchange_error(self, event: UserEvent) -> bool:
        labels = {
            "realm": self._realm(event.realm_id),
            "client_id": _client_id(event),
            "error": _error(event),
        }
        return self._count(
            labels, catalog.OAUTH_TOKEN_EXCHANGE_ERROR_TOTAL, catalog.OAUTH_TOKEN_EXCHANGE_ATTEMPT_TOTAL
        )

    # -------- helpers ---------

    def _count(self, labels: Mapping[str, str], *counters: CounterSpec) -> bool:
        for spec in counters:
            self._aggregator.increment(spec.name, labels)
        return True

    def _realm(self, realm_id: str | None) -> str:
        if not realm_id:
            return MISSING
        return self._realms.resolve(realm_id)


def _log_realm_failure(exc: RealmLookupError, realm_id: str | None, **context: str) -> None:
    logger.warning(
        "metrics.realm.lookup_failed",
        extra={"realm_id": realm_id, "reason": str(exc), **context},
    )


def _client_id(event: UserEvent) -> str:
    return event.client_id or MISSING


def _identity_provider(event: UserEvent) -> str:
    return event.details.get(IDENTITY_PROVIDER_DETAIL) or LOCAL_PROVIDER


def _error(event: UserEvent) -> str:
    return event.error or MISSING
