"""Turn pydantic validation errors into field-keyed, human-readable messages.

Messages follow the admin front end's expectations, e.g.
{"email": ["The email field must be a valid email address."]}.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic_core import ErrorDetails

EMAIL_TAKEN = "The email has already been taken."
BODY_NOT_OBJECT = "The request body must be a JSON object."
BODY_NOT_JSON = "The request body must be valid JSON."

# Location prefixes FastAPI adds in front of the field name.
_REQUEST_LOC_PREFIXES = ("body", "path", "query")


def attribute_label(field: str) -> str:
    """full_name -> 'full name'."""
    return field.replace("_", " ")


def invalid_role_message(index: int) -> str:
    return f"The selected roles.{index} is invalid."


def _message_for(field: str, err: Mapping[str, Any]) -> str:
    attribute = attribute_label(field)
    kind = err.get("type", "")
    ctx = err.get("ctx") or {}

    if kind in ("missing", "null_value", "string_too_short"):
        return f"The {attribute} field is required."
    if kind == "string_type":
        if err.get("input") is None:
            return f"The {attribute} field is required."
        return f"The {attribute} field must be a string."
    if kind == "string_too_long":
        return (
            f"The {attribute} field must not be greater than "
            f"{ctx.get('max_length')} characters."
        )
    if kind == "email_format":
        return f"The {attribute} field must be a valid email address."
    if kind == "list_type":
        return f"The {attribute} field must be an array."
    if kind == "too_short":
        return f"The {attribute} field must have at least {ctx.get('min_length')} items."
    if kind in ("int_type", "int_parsing", "int_from_float"):
        return f"The {attribute} field must be an integer."
    return f"The {attribute} field is invalid."


def messages_from_errors(errors: Iterable[ErrorDetails]) -> dict[str, list[str]]:
    """
    Group pydantic (or FastAPI request) errors by field.

    Bad role ids are keyed per item (roles.0, roles.1, ...). Errors on the body
    itself (malformed JSON, not a JSON object) are keyed as "body".
    """
    result: dict[str, list[str]] = {}
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in _REQUEST_LOC_PREFIXES:
            loc = loc[1:]

        if err.get("type") == "json_invalid":
            # loc holds the parse position, not a field.
            key, message = "body", BODY_NOT_JSON
        elif not loc:
            key, message = "body", BODY_NOT_OBJECT
        elif loc[0] == "roles" and len(loc) > 1 and isinstance(loc[1], int):
            key, message = f"roles.{loc[1]}", invalid_role_message(loc[1])
        else:
            key = str(loc[0])
            message = _message_for(key, err)

        messages = result.setdefault(key, [])
        if message not in messages:
            messages.append(message)
    return result


def has_errors_for(errors: Mapping[str, list[str]], field: str) -> bool:
    """True when field, or any of its items (field.N), has an error."""
    return any(key == field or key.startswith(f"{field}.") for key in errors)


def merge_errors(*groups: Mapping[str, list[str]]) -> dict[str, list[str]]:
    merged: dict[str, list[str]] = {}
    for group in groups:
        for key, messages in group.items():
            bucket = merged.setdefault(key, [])
            bucket.extend(m for m in messages if m not in bucket)
    return merged
