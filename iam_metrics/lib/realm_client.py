"""Realm name lookup collaborators."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import httpx

from iam_metrics.lib.logger import get_logger


class RealmLookupError(RuntimeError):
    """Raised when a realm id cannot be resolved to a realm name."""


logger = get_logger(__name__)


class RealmLookup(Protocol):
    def lookup_realm_name(self, realm_id: str) -> str: ...


class StaticRealmLookup:
    """Resolve realm ids from a fixed mapping, typically loaded from settings."""

    def __init__(self, names: Mapping[str, str]) -> None:
        self._names = dict(names)

    def lookup_realm_name(self, realm_id: str) -> str:
        try:
            return self._names[realm_id]
        except KeyError:
            raise RealmLookupError(f"Unknown realm id '{realm_id}'") from None


class KeycloakRealmClient:
    """Resolve realm ids through the Keycloak admin REST API.

    ``GET /admin/realms`` lists every realm representation visible to the
    token; the one whose ``id`` matches carries the name under ``realm``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._transport = transport

    def lookup_realm_name(self, realm_id: str) -> str:
        for realm in self._list_realms(realm_id):
            if realm.get("id") == realm_id:
                name = realm.get("realm")
                if not isinstance(name, str) or not name:
                    raise RealmLookupError(f"Realm '{realm_id}' has no name in admin response")
                return name
        logger.warning(
            "keycloak.realms.not_found",
            extra={"realm_id": realm_id, "base_url": self.base_url},
        )
        raise RealmLookupError(f"Unknown realm id '{realm_id}'")

    def _list_realms(self, realm_id: str) -> list[dict[str, Any]]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            logger.info(
                "keycloak.realms.request",
                extra={"realm_id": realm_id, "base_url": self.base_url},
            )
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = client.get("/admin/realms")
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            detail = exc.response.text[:200]
            logger.warning(
                "keycloak.realms.http_error",
                extra={
                    "realm_id": realm_id,
                    "base_url": self.base_url,
                    "status": status,
                    "detail": detail,
                },
            )
            raise RealmLookupError(f"Keycloak realm listing failed ({status}): {detail}") from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "keycloak.realms.network_error",
                extra={"realm_id": realm_id, "base_url": self.base_url},
            )
            raise RealmLookupError("Keycloak realm listing failed (network)") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise RealmLookupError("Invalid JSON returned from Keycloak admin API") from exc

        if not isinstance(data, list):
            raise RealmLookupError("Unexpected realm listing shape")

        return [item for item in data if isinstance(item, dict)]
