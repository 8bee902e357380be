"""Counter names, descriptions and label names exposed to dashboards.

These constants are a public contract: renaming one breaks every dashboard
and alert built on top of the exported series.
"""

from __future__ import annotations

from types import MappingProxyType

from iam_metrics.lib.metrics import CounterSpec


USER_EVENT = CounterSpec("user_event", "Generic KeyCloak User event", ("realm", "event_type"))
ADMIN_EVENT = CounterSpec("admin_event", "Generic KeyCloak Admin event", ("realm", "resource", "operation_type"))

AUTH_USER_LOGIN_SUCCESS_TOTAL = CounterSpec(
    "auth_user_login_success_total",
    "Total successful user logins",
    ("realm", "client_id", "provider"),
)
AUTH_USER_LOGIN_ERROR_TOTAL = CounterSpec(
    "auth_user_login_error_total",
    "Total failed user logins",
    ("realm", "client_id", "provider", "error"),
)
AUTH_USER_LOGIN_ATTEMPT_TOTAL = CounterSpec(
    "auth_user_login_attempt_total",
    "Total user login attempts",
    ("realm", "client_id", "provider", "error"),
)

AUTH_USER_LOGOUT_SUCCESS_TOTAL = CounterSpec(
    "auth_user_logout_success_total",
    "Total successful user logouts",
    ("realm", "provider"),
)
AUTH_USER_LOGOUT_ERROR_TOTAL = CounterSpec(
    "auth_user_logout_error_total",
    "Total failed user logouts",
    ("realm", "provider", "client_id", "error"),
)

AUTH_CLIENT_LOGIN_SUCCESS_TOTAL = CounterSpec(
    "auth_client_login_success_total",
    "Total successful client logins",
    ("realm", "client_id"),
)
AUTH_CLIENT_LOGIN_ERROR_TOTAL = CounterSpec(
    "auth_client_login_error_total",
    "Total failed client logins",
    ("realm", "client_id", "error"),
)
AUTH_CLIENT_LOGIN_ATTEMPT_TOTAL = CounterSpec(
    "auth_client_login_attempt_total",
    "Total client login attempts",
    ("realm", "client_id", "error"),
)

AUTH_USER_REGISTER_SUCCESS_TOTAL = CounterSpec(
    "auth_user_register_success_total",
    "Total successful user registrations",
    ("realm", "client_id"),
)
AUTH_USER_REGISTER_ERROR_TOTAL = CounterSpec(
    "auth_user_register_error_total",
    "Total failed user registrations",
    ("realm", "client_id", "error", "provider"),
)
AUTH_USER_REGISTER_ATTEMPT_TOTAL = CounterSpec(
    "auth_user_register_attempt_total",
    "Total user registration attempts",
    ("realm", "client_id", "error", "provider"),
)

OAUTH_TOKEN_REFRESH_SUCCESS_TOTAL = CounterSpec(
    "oauth_token_refresh_success_total",
    "Total successful token refreshes",
    ("realm", "client_id"),
)
OAUTH_TOKEN_REFRESH_ERROR_TOTAL = CounterSpec(
    "oauth_token_refresh_error_total",
    "Total failed token refreshes",
    ("realm", "client_id", "error", "provider"),
)
OAUTH_TOKEN_REFRESH_ATTEMPT_TOTAL = CounterSpec(
    "oauth_token_refresh_attempt_total",
    "Total token refresh attempts",
    ("realm", "client_id", "error", "provider"),
)

OAUTH_CODE_TO_TOKEN_SUCCESS_TOTAL = CounterSpec(
    "oauth_code_to_token_success_total",
    "Total successful authorization code to token exchanges",
    ("realm", "provider", "client_id"),
)
OAUTH_CODE_TO_TOKEN_ERROR_TOTAL = CounterSpec(
    "oauth_code_to_token_error_total",
    "Total failed authorization code to token exchanges",
    ("realm", "provider", "client_id", "error"),
)
OAUTH_CODE_TO_TOKEN_ATTEMPT_TOTAL = CounterSpec(
    "oauth_code_to_token_attempt_total",
    "Total authorization code to token exchange attempts",
    ("realm", "provider", "client_id", "error"),
)

OAUTH_USERINFO_REQUEST_SUCCESS_TOTAL = CounterSpec(
    "oauth_userinfo_request_success_total",
    "Total successful userinfo requests",
    ("realm", "client_id"),
)
OAUTH_USERINFO_REQUEST_ERROR_TOTAL = CounterSpec(
    "oauth_userinfo_request_error_total",
    "Total failed userinfo requests",
    ("realm", "client_id", "error"),
)
OAUTH_USERINFO_REQUEST_ATTEMPT_TOTAL = CounterSpec(
    "oauth_userinfo_request_attempt_total",
    "Total userinfo request attempts",
    ("realm", "client_id", "error"),
)

OAUTH_TOKEN_EXCHANGE_SUCCESS_TOTAL = CounterSpec(
    "oauth_token_exchange_success_total",
    "Total successful token exchanges",
    ("realm", "client_id"),
)
OAUTH_TOKEN_EXCHANGE_ERROR_TOTAL = CounterSpec(
    "oauth_token_exchange_error_total",
    "Total failed token exchanges",
    ("realm", "client_id", "error"),
)
OAUTH_TOKEN_EXCHANGE_ATTEMPT_TOTAL = CounterSpec(
    "oauth_token_exchange_attempt_total",
    "Total token exchange attempts",
    ("realm", "client_id", "error"),
)

GENERIC_COUNTERS: tuple[CounterSpec, ...] = (USER_EVENT, ADMIN_EVENT)

COUNTERS: MappingProxyType[str, CounterSpec] = MappingProxyType(
    {
        spec.name: spec
        for spec in (
            USER_EVENT,
            ADMIN_EVENT,
            AUTH_USER_LOGIN_SUCCESS_TOTAL,
            AUTH_USER_LOGIN_ERROR_TOTAL,
            AUTH_USER_LOGIN_ATTEMPT_TOTAL,
            AUTH_USER_LOGOUT_SUCCESS_TOTAL,
            AUTH_USER_LOGOUT_ERROR_TOTAL,
            AUTH_CLIENT_LOGIN_SUCCESS_TOTAL,
            AUTH_CLIENT_LOGIN_ERROR_TOTAL,
            AUTH_CLIENT_LOGIN_ATTEMPT_TOTAL,
            AUTH_USER_REGISTER_SUCCESS_TOTAL,
            AUTH_USER_REGISTER_ERROR_TOTAL,
            AUTH_USER_REGISTER_ATTEMPT_TOTAL,
            OAUTH_TOKEN_REFRESH_SUCCESS_TOTAL,
            OAUTH_TOKEN_REFRESH_ERROR_TOTAL,
            OAUTH_TOKEN_REFRESH_ATTEMPT_TOTAL,
            OAUTH_CODE_TO_TOKEN_SUCCESS_TOTAL,
            OAUTH_CODE_TO_TOKEN_ERROR_TOTAL,
            OAUTH_CODE_TO_TOKEN_ATTEMPT_TOTAL,
            OAUTH_USERINFO_REQUEST_SUCCESS_TOTAL,
            OAUTH_USERINFO_REQUEST_ERROR_TOTAL,
            OAUTH_USERINFO_REQUEST_ATTEMPT_TOTAL,
            OAUTH_TOKEN_EXCHANGE_SUCCESS_TOTAL,
            OAUTH_TOKEN_EXCHANGE_ERROR_TOTAL,
            OAUTH_TOKEN_EXCHANGE_ATTEMPT_TOTAL,
        )
    }
)
