"""Typed failures raised by the service layer.

Both are expected outcomes: the HTTP layer maps ``NotFoundError`` to 404 and
``ValidationError`` to 400. Anything else is a genuine fault and propagates.
"""

from dataclasses import dataclass


class HoistError(Exception):
    """Base class for domain errors."""


class NotFoundError(HoistError):
    """Entity is missing or belongs to another user.

    The two cases are deliberately indistinguishable to the caller.
    """

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f'{entity} "{key}" was not found.')


@dataclass(frozen=True)
class ValidationFailure:
    field: str
    message: str


class ValidationError(HoistError):
    """One or more business-rule violations."""

    def __init__(self, failures: list[ValidationFailure]):
        self.failures = failures
        super().__init__("; ".join(f.message for f in failures))

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([ValidationFailure(field, message)])

    def errors_by_field(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for failure in self.failures:
            grouped.setdefault(failure.field, []).append(failure.message)
        return grouped
