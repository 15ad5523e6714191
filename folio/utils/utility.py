import datetime as dt
import math
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from folio.errors.errors import DateFormatError, ValidationError
from folio.types.aliases import DateFormat

# --- Input parsing ---


def parse_quantity(raw: Union[str, int]) -> int:
    """
    Parse a transaction quantity: a strictly positive integer.
    Accepts ints and decimal-digit strings ("10", " 10 "); rejects "10.0", "1e3", bools.
    """
    if isinstance(raw, bool):
        raise ValidationError("quantity must be a positive integer", field="quantity", value=raw)
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not (text.isascii() and text.isdigit()):
            raise ValidationError(
                f"quantity must be a positive integer, got {raw!r}", field="quantity", value=raw
            )
        value = int(text)
    if value <= 0:
        raise ValidationError(
            f"quantity must be a positive integer, got {raw!r}", field="quantity", value=raw
        )
    return value


def parse_non_negative(raw: Union[str, int, float], field: str) -> float:
    """
    Parse a non-negative finite real number. NaN and infinities are rejected.
    """
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a non-negative number", field=field, value=raw)
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"{field} must be a non-negative number, got {raw!r}", field=field, value=raw
        ) from exc
    if not math.isfinite(value) or value < 0:
        raise ValidationError(
            f"{field} must be a non-negative number, got {raw!r}", field=field, value=raw
        )
    return value


def parse_optional_non_negative(raw: Optional[Union[str, int, float]], field: str) -> Optional[float]:
    if raw is None:
        return None
    return parse_non_negative(raw, field)


def parse_date(raw: Union[str, dt.date], date_format: DateFormat) -> dt.date:
    """
    Parse a calendar date in `date_format` (e.g. "%d/%m/%Y" -> "31/01/2024").
    `datetime.date` instances pass through unchanged.
    """
    if isinstance(raw, dt.datetime):
        return raw.date()
    if isinstance(raw, dt.date):
        return raw
    try:
        return dt.datetime.strptime(str(raw).strip(), date_format).date()
    except ValueError as exc:
        raise DateFormatError(
            f"date {raw!r} does not match format {date_format!r}",
            value=str(raw),
            expected_format=date_format,
        ) from exc


# --- Config helpers ---


def validation_error_parser(error: PydanticValidationError) -> list[dict[str, str]]:
    parsed_error = [
        {
            "component": "config.schema",
            "path": ".".join(map(str, err["loc"])),
            "message": err["msg"],
            "error_type": err["type"],
        }
        for err in error.errors()
    ]
    return parsed_error


def deep_merge(a: Mapping[str, Any], b: Mapping[str, Any]) -> Mapping[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def insert_path(tree: Dict[str, Any], dotted_path: str, value: Any) -> None:
    """Populate ``tree`` with ``value`` located at ``dotted_path``."""

    segments = [segment.strip() for segment in dotted_path.split(".") if segment.strip()]
    if not segments:
        raise ValueError("Override keys must contain at least one non-empty segment")

    cursor: Dict[str, Any] = tree
    for segment in segments[:-1]:
        existing = cursor.get(segment)
        if existing is None:
            next_node: Dict[str, Any] = {}
            cursor[segment] = next_node
            cursor = next_node
        elif isinstance(existing, dict):
            cursor = existing
        else:
            raise ValueError(
                (
                    f"Cannot override nested path '{dotted_path}': "
                    f"segment '{segment}' is already a value"
                )
            )

    leaf = segments[-1]
    existing_leaf = cursor.get(leaf)
    if isinstance(existing_leaf, dict):
        raise ValueError(
            (f"Cannot assign value to '{dotted_path}': existing node at '{leaf}' is a mapping")
        )
    cursor[leaf] = value
