"""REST endpoints and request bodies of the backend, per entity kind."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from offlinesync.errors import InvalidArgumentError
from offlinesync.models import EmailType, EntityKind

USERS_PATH = "/api/usuarios"
ENROLLMENTS_PATH = "/api/inscricoes"
ATTENDANCES_PATH = "/api/presencas"

EMAIL_PATHS: dict[EmailType, str] = {
    EmailType.ATTENDANCE: "/api/email/presenca",
    EmailType.ENROLLMENT: "/api/email/inscricao",
    EmailType.CANCELLATION: "/api/email/cancelar",
}


def build_body(kind: EntityKind, payload: Mapping[str, Any]) -> tuple[str, dict[str, Any], bool]:
    """
    Return (path, json_body, uses_email_api) for a rewritten payload.

    Raises:
        InvalidArgumentError: a required field is missing.
    """
    if kind is EntityKind.USER:
        return USERS_PATH, dict(payload), False

    if kind is EntityKind.ENROLLMENT:
        return ENROLLMENTS_PATH, {
            "evento_id": _require(payload, "event_id", kind),
            "usuario_id": _require(payload, "user", kind),
        }, False

    if kind is EntityKind.ATTENDANCE:
        return ATTENDANCES_PATH, {
            "inscricao_id": _require(payload, "enrollment", kind),
        }, False

    if kind is EntityKind.NOTIFICATION_EMAIL:
        raw_type = _require(payload, "email_type", kind)
        try:
            email_type = EmailType(raw_type)
        except ValueError as exc:
            raise InvalidArgumentError(
                "Unknown email_type",
                details={"email_type": raw_type},
                cause=exc,
            ) from exc
        return EMAIL_PATHS[email_type], {
            "id_usuario": _require(payload, "user", kind),
            "id_evento": _require(payload, "event_id", kind),
        }, True

    raise InvalidArgumentError("Unsupported kind", details={"kind": kind})


def _require(payload: Mapping[str, Any], field_name: str, kind: EntityKind) -> Any:
    value = payload.get(field_name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(
            f"Missing required field: {field_name}",
            details={"kind": kind.value, "field": field_name},
        )
    return value
