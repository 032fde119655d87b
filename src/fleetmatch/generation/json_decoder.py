"""Decode JSON objects embedded in generative text into validated models."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from fleetmatch.exceptions import MalformedGenerativeResponse

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


@dataclass
class DecodeResult(Generic[T]):
    value: T | None = None
    error: MalformedGenerativeResponse | None = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the text unchanged."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def extract_json_object(text: str) -> str | None:
    """Find the first balanced top-level JSON object in free text."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for pos in range(start, len(text)):
            ch = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : pos + 1]
        start = text.find("{", start + 1)
    return None


def decode_json(text: str | None, schema: type[T]) -> DecodeResult[T]:
    """Parse possibly-fenced JSON from generative output and validate it.

    Never raises: failures come back as ``DecodeResult.error``.
    """
    if not text or not text.strip():
        return DecodeResult(error=MalformedGenerativeResponse("empty response"))

    body = strip_code_fences(text)
    candidate = extract_json_object(body)
    if candidate is None:
        return DecodeResult(error=MalformedGenerativeResponse("no JSON object found"))

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        return DecodeResult(error=MalformedGenerativeResponse(f"invalid JSON: {e}"))

    try:
        return DecodeResult(value=schema.model_validate(data))
    except ValidationError as e:
        return DecodeResult(
            error=MalformedGenerativeResponse(f"schema mismatch: {e.error_count()} errors")
        )
