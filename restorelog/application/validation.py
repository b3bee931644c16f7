"""Shared validation utilities for application layer.

Wraps the pure domain validators with logging so that rejected client
input shows up in the validation log before any storage or Admin API call.
"""

import json
from typing import Any

from ..domain.entities import validate_row_id
from ..domain.exceptions import ValidationError
from ..logging_utils import log_validation_error


def validate_row_id_with_logging(raw: Any) -> int:
    """Validate a row id from a deletion request.

    Raises:
        ValidationError: If the id is missing or non-numeric
    """
    try:
        return validate_row_id(raw)
    except ValidationError as e:
        log_validation_error("rowId", raw, str(e))
        raise


def parse_restore_rows(raw: str | None) -> list[dict[str, Any]]:
    """Decode the JSON-encoded ``rows`` field of a restore request.

    Raises:
        ValidationError: If the field is not a JSON array of objects
    """
    try:
        rows = json.loads(raw or "[]")
    except json.JSONDecodeError as e:
        log_validation_error("rows", raw, "rows is not valid JSON")
        raise ValidationError("rows must be a JSON-encoded array", field="rows") from e

    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        log_validation_error("rows", raw, "rows is not an array of objects")
        raise ValidationError("rows must be a JSON-encoded array", field="rows")
    return rows
