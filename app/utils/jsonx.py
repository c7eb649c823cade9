import json
from typing import Any, Mapping


def to_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=True, default=str, sort_keys=True)


def details_from_json(value: str) -> dict[str, Any]:
    try:
        parsed = json.loads(value) if value else {}
    except ValueError:
        return {}
    return dict(parsed) if isinstance(parsed, Mapping) else {}
