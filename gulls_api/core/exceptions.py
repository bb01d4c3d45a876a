"""
Service-wide exception hierarchy.

Services raise these canonical types instead of ad-hoc exception classes,
so callers (CLI commands, an HTTP layer, tests) can handle them once.

Usage:
    from gulls_api.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Amendment", resource_id=42)
    raise ValidationError("Unknown species", details={"species": "kittiwake"})

Persistence failures inside a workflow transaction are NOT raised: the
workflow rolls back and returns ``None`` instead.
"""


class NotFoundError(Exception):
    """Raised when a requested record does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Amendment").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a payload handed to a workflow is not shaped as expected.

    Well-formedness is checked upstream; this only guards the few things a
    workflow cannot proceed without (e.g. species keys it does not know).

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)
