"""Tolerant JSON extraction from model responses."""

from __future__ import annotations

import json
import re

_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?|\n?```\s*$")


def extract_json(text: str) -> dict | list:
    """Extract a JSON value from a model response.

    Tries, in order: the whole text, the text without markdown code fences,
    the outermost ``{...}`` span, the outermost ``[...]`` span, and finally a
    repair that closes brackets left open by a truncated response.

    Raises:
        ValueError: if nothing parses.
    """
    text = (text or "").strip()
    unfenced = strip_code_fences(text)

    for candidate in (text, unfenced):
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            pass

    for opener, closer in (("{", "}"), ("[", "]")):
        span = _outer_span(unfenced, opener, closer)
        if span is not None:
            try:
                return json.loads(span)
            except json.JSONDecodeError:
                pass

    repaired = repair_truncated(unfenced)
    if repaired is not None:
        return repaired

    raise ValueError(f"Could not extract JSON from text: {text[:200]}...")


def extract_json_object(text: str) -> dict:
    data = extract_json(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text.strip()).strip()


def _outer_span(text: str, opener: str, closer: str) -> str | None:
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def repair_truncated(text: str) -> dict | None:
    """Close the braces and brackets a truncated object left open."""
    start = text.find("{")
    if start == -1:
        return None
    body = text[start:]

    # cut back to the last complete string value before closing
    for candidate in (body, body[: body.rfind('"') + 1]):
        open_braces = candidate.count("{") - candidate.count("}")
        open_brackets = candidate.count("[") - candidate.count("]")
        if open_braces <= 0 and open_brackets <= 0:
            continue
        closed = candidate.rstrip().rstrip(",")
        closed += "]" * max(0, open_brackets) + "}" * max(0, open_braces)
        try:
            result = json.loads(closed)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result
    return None
