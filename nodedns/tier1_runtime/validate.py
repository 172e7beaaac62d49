"""
nodedns.tier1_runtime.validate
───────────────────────────────
Inventory validation via Pydantic v2. Raises nodedns ValidationError
(not raw Pydantic errors) so a malformed node object reported by the watch
surfaces with a stable code and a field map.
"""
from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

T = TypeVar("T", bound=BaseModel)


def validate_input(model: Type[T], data: Any) -> T:
    """
    Validate raw data against a Pydantic model.
    Raises nodedns ValidationError (not Pydantic's) on failure.

    Usage:
        node = validate_input(Node, {"name": "worker-1", "addresses": [...]})
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        from nodedns.tier0_core.errors import ValidationError

        fields = {
            ".".join(str(loc) for loc in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        raise ValidationError(
            code="validation_error",
            user_message=f"{model.__name__} validation failed.",
            fields=fields,
        ) from exc
