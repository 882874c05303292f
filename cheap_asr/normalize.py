from __future__ import annotations

import json
from typing import Any


def attach_json(record: dict[str, Any], *, include_json: bool) -> dict[str, Any]:
    """Return a copy of ``record`` with or without its ``json`` dump.

    Any ``json`` key already on the record is dropped first, so the dump
    never nests a previous dump and repeated calls are stable.
    """
    out = {k: v for k, v in record.items() if k != "json"}
    if include_json:
        out["json"] = json.dumps(out, ensure_ascii=False)
    return out
