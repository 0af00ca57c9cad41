"""JSON schema validation and LLM response extraction helpers."""
import json
import re
import jsonschema
from pathlib import Path


def load_schema(schema_path: Path) -> dict:
    with open(schema_path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate(data, schema: dict) -> list[str]:
    """Return list of validation error messages, empty if valid."""
    try:
        jsonschema.Draft7Validator.check_schema(schema)
    except jsonschema.SchemaError as e:
        return [f"Schema error: {e.message}"]

    errors = []
    for e in jsonschema.Draft7Validator(schema).iter_errors(data):
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        errors.append(f"{where}: {e.message}")
    return sorted(errors)


def extract_json_from_text(text: str) -> dict | None:
    """Try to extract the first JSON object from a chat-completion reply."""
    if not text:
        return None

    # Try direct parse
    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except json.JSONDecodeError:
        pass

    # Find JSON block between ```json ... ```
    match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass

    # Find first { ... } block
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            pass

    return None


def extract_json_array_from_text(text: str) -> list | None:
    """Try to extract a JSON array from a chat-completion reply.

    An object wrapping the array under "insights" is unwrapped.
    """
    if not text:
        return None

    def _as_list(parsed):
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, dict) and isinstance(parsed.get("insights"), list):
            return parsed["insights"]
        return None

    try:
        return _as_list(json.loads(text))
    except json.JSONDecodeError:
        pass

    match = re.search(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", text, re.DOTALL)
    if match:
        try:
            return _as_list(json.loads(match.group(1)))
        except json.JSONDecodeError:
            pass

    match = re.search(r"\[.*\]", text, re.DOTALL)
    if match:
        try:
            return _as_list(json.loads(match.group(0)))
        except json.JSONDecodeError:
            pass

    return None
