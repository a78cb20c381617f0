"""
Turns raw model text into JSON and finds the item list inside it.

Models do not hold to one envelope: the same stage may answer with a bare
array, `{"questions": [...]}`, `{"critiques": [...]}` or some other single
array field. Each envelope is a named adapter; a stage tries its adapters in
order and the first match wins. The matching adapter is always logged.
"""

import json
import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .errors import MalformedResponse, SchemaMismatch

logger = logging.getLogger(__name__)


def _strip_code_fence(text: str) -> str:
    s = text.strip()
    if s.startswith("```"):
        newline_idx = s.find("\n")
        s = s[newline_idx + 1 :] if newline_idx != -1 else ""
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    return s.strip()


def parse_json_payload(raw_text: str, stage: str) -> Any:
    """Parse model output as JSON, tolerating a markdown code fence around it."""
    try:
        return json.loads(_strip_code_fence(raw_text))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"[{stage}] Failed to parse OpenAI response: {raw_text[:500]!r}")
        raise MalformedResponse(
            f"Invalid JSON response from OpenAI: {e}", raw_text=raw_text
        ) from e


class ShapeAdapter:
    """A named rule that pulls the item list out of one payload envelope."""

    def __init__(self, name: str, extract: Callable[[Any], Optional[List]]):
        self.name = name
        self._extract = extract

    def __call__(self, payload: Any) -> Optional[List]:
        items = self._extract(payload)
        return items if isinstance(items, list) else None

    def __repr__(self):
        return f"ShapeAdapter({self.name!r})"


def field_adapter(field: str) -> ShapeAdapter:
    return ShapeAdapter(
        f"{field}_field",
        lambda payload: payload.get(field) if isinstance(payload, dict) else None,
    )


def _sole_array(payload: Any) -> Optional[List]:
    if not isinstance(payload, dict):
        return None
    arrays = [v for v in payload.values() if isinstance(v, list)]
    return arrays[0] if len(arrays) == 1 else None


BARE_ARRAY = ShapeAdapter("bare_array", lambda payload: payload)
SOLE_ARRAY_FIELD = ShapeAdapter("sole_array_field", _sole_array)


def extract_items(
    payload: Any, adapters: Sequence[ShapeAdapter], stage: str
) -> Tuple[str, List]:
    """Return (adapter name, items) for the first adapter that matches."""
    for adapter in adapters:
        items = adapter(payload)
        if items is not None:
            logger.info(f"[{stage}] Matched '{adapter.name}' shape with {len(items)} items")
            return adapter.name, items
    logger.error(f"[{stage}] No known response shape matched: {json.dumps(payload)[:500]}")
    raise SchemaMismatch(
        f"Response did not match any expected shape "
        f"({', '.join(a.name for a in adapters)})",
        payload=payload,
    )


__all__ = [
    "ShapeAdapter",
    "BARE_ARRAY",
    "SOLE_ARRAY_FIELD",
    "field_adapter",
    "parse_json_payload",
    "extract_items",
]
