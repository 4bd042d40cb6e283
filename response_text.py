"""Pull the plain-text answer out of a Responses API body."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

API_ERROR_PREFIX = "Ошибка API: "


class ResponseParseError(ValueError):
    pass


class _JsonNumber(str):
    """A JSON number kept in its literal spelling (``1e5`` stays ``1e5``)."""


def _is_blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


def resolve_text_value(value: Any) -> Optional[str]:
    """Textual content of a JSON value, unwrapping ``{"value": ...}`` objects.

    Arrays and nulls have no textual content.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return resolve_text_value(value.get("value"))
    if isinstance(value, list):
        return None
    if isinstance(value, str):
        return value
    # booleans, and numbers not produced by extract_response_text's parser
    return json.dumps(value)


def _collect_output_fragments(output: List[Any]) -> str:
    fragments: List[str] = []
    for item in output:
        if not isinstance(item, dict):
            continue
        item_type = resolve_text_value(item.get("type"))
        if item_type == "output_text":
            fragments.append(resolve_text_value(item.get("text")) or "")
            continue
        if item_type != "message":
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for fragment in content:
            if not isinstance(fragment, dict):
                continue
            if resolve_text_value(fragment.get("type")) in {"output_text", "text"}:
                text = resolve_text_value(fragment.get("text"))
                if text is None:
                    text = resolve_text_value(fragment.get("value"))
                fragments.append(text or "")
    return "".join(fragments)


def extract_response_text(body: str) -> str:
    try:
        payload = json.loads(body, parse_int=_JsonNumber, parse_float=_JsonNumber)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"invalid JSON: {exc}") from exc
    except RecursionError as exc:
        raise ResponseParseError("JSON nested too deeply") from exc
    if not isinstance(payload, dict):
        raise ResponseParseError(f"expected a JSON object, got {type(payload).__name__}")
    try:
        return _extract_from_payload(payload)
    except RecursionError as exc:
        raise ResponseParseError("value wrapping nested too deeply") from exc


def _extract_from_payload(payload: Dict[str, Any]) -> str:
    error = payload.get("error")
    if isinstance(error, dict):
        message = resolve_text_value(error.get("message"))
        if not _is_blank(message):
            return API_ERROR_PREFIX + message

    output_text = resolve_text_value(payload.get("output_text"))
    if not _is_blank(output_text):
        return output_text

    output = payload.get("output")
    if not isinstance(output, list):
        output = []
    answer = _collect_output_fragments(output)
    if not _is_blank(answer):
        return answer

    status = resolve_text_value(payload.get("status"))
    return (
        "Ошибка: не удалось извлечь текст ответа "
        f"(status={status if status is not None else 'null'}, output_items={len(output)})"
    )
