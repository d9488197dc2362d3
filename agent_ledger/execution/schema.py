from __future__ import annotations

from typing import Any, Dict

import jsonschema  # type: ignore[import-untyped]


class RequestValidationError(ValueError):
    """A payload does not match its operation's JSON Schema."""

    def __init__(self, operation_name: str, detail: str) -> None:
        super().__init__(f"{operation_name}: {detail}")
        self.operation_name = operation_name
        self.detail = detail


def validate(operation_name: str, instance: Dict[str, Any], schema: Dict[str, Any]) -> None:
    try:
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError as exc:
        raise RequestValidationError(operation_name, exc.message) from exc
