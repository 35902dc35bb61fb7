"""Input validation helpers."""

from __future__ import annotations

from typing import Type, TypeVar

from flask import jsonify, request
from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)


class RequestValidationError(Exception):
    """Raised by parse_body; carries a ready-to-return 400 response."""

    def __init__(self, exc: ValidationError) -> None:
        super().__init__(str(exc))
        self.response = (
            jsonify({"ok": False, "error": "bad_request", "details": jsonable_errors(exc)}),
            400,
        )


def jsonable_errors(exc: ValidationError) -> list[dict]:
    errors = exc.errors(include_url=False)
    for err in errors:
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        err.pop("input", None)
    return errors


def parse_body(model: Type[M]) -> M:
    """Validate the JSON body of the current request against a pydantic model."""
    payload = request.get_json(silent=True) or {}
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc) from exc
