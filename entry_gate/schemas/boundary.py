"""Boundary Parsing - turns loosely-typed external records into validated models.

Invariants:
    - Every external record (ledger, issuer, profile, roster) goes through parse_record
    - Pydantic ValidationError never escapes: it becomes MalformedInputError
    - Already-validated model instances pass through untouched
"""

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from entry_gate.core.errors import MalformedInputError

M = TypeVar("M", bound=BaseModel)


def parse_record(model: type[M], raw: object, record: str) -> M:
    """Validate `raw` as `model` or raise MalformedInputError naming `record`."""
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise MalformedInputError(record, _summarize(e)) from e


def _summarize(error: ValidationError) -> str:
    """First few field errors, as `field: message` pairs."""
    parts = []
    for item in error.errors()[:3]:
        loc = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)
