"""
Error taxonomy shared by the configuration subsystem and its views.

- Validation failures are local to a draft and never reach the store.
- Persistence failures leave the caller's draft untouched so the user can retry.
- Unknown references (widgets, entity types, field ids) are contained to the
  smallest region of the page that mentions them.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


class CrmError(Exception):
    pass


class FieldValidationFailed(CrmError):
    def __init__(self, errors: list[ValidationError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))

    def as_dict(self) -> dict[str, str]:
        return errors_by_field(self.errors)


class PersistenceError(CrmError):
    pass


class UnknownReference(CrmError, LookupError):
    pass


class FieldNotFound(UnknownReference):
    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(f"Custom field {field_id!r} does not exist.")


def errors_by_field(errors: list[ValidationError]) -> dict[str, str]:
    """First message per field, in the order the errors were collected."""
    out: dict[str, str] = {}
    for e in errors:
        out.setdefault(e.field, e.message)
    return out


class CrmApiError(CrmError):
    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
