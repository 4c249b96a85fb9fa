"""
Custom JSON encoder that handles enums and other non-serializable types.
Keeps event exports and rule dumps from failing on arbitrary payloads.
"""

import json
import re
from datetime import date, datetime
from enum import Enum
from dataclasses import is_dataclass, asdict
from typing import Any

from pydantic import BaseModel


class EnumJSONEncoder(json.JSONEncoder):
    """JSON encoder that converts enums, models and patterns to plain values"""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        elif is_dataclass(obj) and not isinstance(obj, type):
            return self._convert_dict(asdict(obj))
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, re.Pattern):
            return obj.pattern
        elif isinstance(obj, (set, frozenset, tuple)):
            return list(obj)
        # Diagnostic payloads are free-form, anything else is stringified
        return repr(obj)

    def _convert_dict(self, data: dict) -> dict:
        """Recursively convert enum values in nested dictionaries"""
        result = {}
        for key, value in data.items():
            if isinstance(value, Enum):
                result[key] = value.value
            elif isinstance(value, dict):
                result[key] = self._convert_dict(value)
            elif isinstance(value, (list, tuple)):
                result[key] = [
                    item.value if isinstance(item, Enum) else
                    self._convert_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                result[key] = value
        return result


def json_dumps(obj: Any, **kwargs) -> str:
    """JSON dumps with automatic enum handling"""
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(obj, cls=EnumJSONEncoder, **kwargs)


def to_json_dict(obj: Any) -> Any:
    """Convert any object to a JSON-serializable structure"""
    return json.loads(json_dumps(obj))
