"""Error taxonomy for work-entry operations.

Every rejection the core can produce is a ``WorkLedgerError`` subclass with a
stable ``kind``, the HTTP status the adapter should use, and the identifiers
needed to render a precise message. None of these are transient: callers must
not retry them.
"""

from __future__ import annotations

from typing import Any


class WorkLedgerError(Exception):
    """Base class for all deterministic rejections."""

    kind = "InternalError"
    http_status = 500

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Render as a JSON-friendly payload."""
        return {"error": self.kind, "detail": self.message, **_jsonable(self.context)}


class Unauthenticated(WorkLedgerError):
    """No valid principal in context."""

    kind = "Unauthenticated"
    http_status = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class BadRequest(WorkLedgerError):
    """Malformed request, e.g. no resolvable company context."""

    kind = "BadRequest"
    http_status = 400


class MissingFields(BadRequest):
    """One or more required fields were absent or empty."""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}", fields=fields)


class InvalidNumber(WorkLedgerError):
    """A numeric field could not be coerced to a finite number."""

    kind = "InvalidNumber"
    http_status = 400

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid numeric value for {field}: {value!r}", field=field)


class Forbidden(WorkLedgerError):
    """Principal lacks a required permission."""

    kind = "Forbidden"
    http_status = 403

    def __init__(self, permission_code: str | None = None, message: str | None = None):
        self.permission_code = permission_code
        if message is None:
            message = f"Missing permission: {permission_code}" if permission_code else "Forbidden"
        super().__init__(message, missing_permission=permission_code)


class OutOfEditWindow(WorkLedgerError):
    """Row exists but is older than the principal's edit window."""

    kind = "OutOfEditWindow"
    http_status = 403

    def __init__(self, entry_id: int, window_days: int | None, action: str = "edit"):
        self.entry_id = entry_id
        self.window_days = window_days
        super().__init__(
            f"You cannot {action} this record (out of allowed date range)",
            entry_id=entry_id,
            window_days=window_days,
        )


class NotFound(WorkLedgerError):
    """Target row does not exist, or a scoped mutation affected nothing."""

    kind = "NotFound"
    http_status = 404

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}", entity=entity, id=identifier)


class InvalidJobReference(WorkLedgerError):
    """Job code does not resolve inside the company."""

    kind = "InvalidJobReference"
    http_status = 400

    def __init__(self, job_code: str, company_id: int):
        self.job_code = job_code
        self.company_id = company_id
        super().__init__(
            f"Invalid job_code: {job_code}",
            job_code=job_code,
            company_id=company_id,
        )


class InvalidRate(WorkLedgerError):
    """Caller-supplied rate is missing, non-finite or not strictly positive."""

    kind = "InvalidRate"
    http_status = 400

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}", field=field)


class RateResolutionFailed(WorkLedgerError):
    """Stored job/tier data produced a non-positive rate.

    Signals misconfigured rate data rather than a user error.
    """

    kind = "RateResolutionFailed"
    http_status = 400

    def __init__(self, job_id: int, tier_id: int | None, reason: str):
        self.job_id = job_id
        self.tier_id = tier_id
        self.reason = reason
        super().__init__(
            f"Failed to resolve rates for job {job_id} / tier {tier_id}: {reason}",
            job_id=job_id,
            tier_id=tier_id,
        )


class RateEditForbidden(WorkLedgerError):
    """A rate change was requested without WORK_ENTRY_EDIT_RATES."""

    kind = "RateEditForbidden"
    http_status = 403

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__("No permission to edit rates", entry_id=entry_id)


class DuplicateJobReference(WorkLedgerError):
    """(company, job_no1) is already taken."""

    kind = "DuplicateJobReference"
    http_status = 400

    def __init__(self, company_id: int, job_no1: str):
        self.company_id = company_id
        self.job_no1 = job_no1
        super().__init__(
            "Job No1 already exists for this company",
            company_id=company_id,
            job_no1=job_no1,
        )


class InvalidFees(WorkLedgerError):
    """fees_collected was negative."""

    kind = "InvalidFees"
    http_status = 400

    def __init__(self, value: Any):
        self.value = value
        super().__init__("fees_collected cannot be negative")


class InternalError(WorkLedgerError):
    """Unexpected storage fault. Carries no storage detail."""

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)


def _jsonable(context: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in context.items():
        if isinstance(value, (str, int, float, bool, list)):
            out[key] = value
        else:
            out[key] = str(value)
    return out
