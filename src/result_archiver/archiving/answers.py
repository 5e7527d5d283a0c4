"""Answer map helpers."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional


def answer_identifier(
    result_identifier: str,
    section_identifier: Optional[str],
    collection_identifier: Optional[str],
    override: Optional[str] = None,
) -> str:
    """Return the key an answer is stored under in the answers file.

    An *override* wins outright. Otherwise the key is prefixed with the section
    and then the collection, skipping the collection when it shares the result's
    identifier.
    """

    if override is not None:
        return override
    section_prefix = f"{section_identifier}_" if section_identifier is not None else ""
    collection_prefix = (
        f"{collection_identifier}_"
        if collection_identifier is not None and collection_identifier != result_identifier
        else ""
    )
    return f"{section_prefix}{collection_prefix}{result_identifier}"


def encode_answer_map(answer_map: Dict[str, Any]) -> bytes:
    return json.dumps(answer_map, indent=2, sort_keys=True, default=str).encode("utf-8")
