"""
Serialization Utilities

Conversion of engine objects (dataclasses, enums, datetimes, tuples) into
JSON-compatible structures for API responses and logging.
"""

import json
import datetime
from enum import Enum
from typing import Any, Dict, List
from dataclasses import is_dataclass, fields


def serialize(obj: Any, exclude_none: bool = False) -> Any:
    """
    Convert ``obj`` into plain dicts, lists and scalars.

    Objects exposing ``to_dict()`` are serialized through it; dataclasses are
    walked field by field; enums collapse to their value.

    Args:
        obj: The object to serialize
        exclude_none: Drop ``None`` values from mappings
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [serialize(item, exclude_none) for item in obj]

    if isinstance(obj, dict):
        return {
            str(serialize(key)): serialize(value, exclude_none)
            for key, value in obj.items()
            if not (exclude_none and value is None)
        }

    if hasattr(obj, 'to_dict') and callable(getattr(obj, 'to_dict')):
        return serialize(obj.to_dict(), exclude_none)

    if is_dataclass(obj):
        return {
            f.name: serialize(getattr(obj, f.name), exclude_none)
            for f in fields(obj)
            if not (exclude_none and getattr(obj, f.name) is None)
        }

    if hasattr(obj, '__dict__'):
        return {
            k: serialize(v, exclude_none) for k, v in obj.__dict__.items()
            if not k.startswith('_') and not (exclude_none and v is None)
        }

    return str(obj)


def to_json(obj: Any, pretty: bool = False, exclude_none: bool = False) -> str:
    """Serialize ``obj`` to a JSON string."""
    indent = 2 if pretty else None
    return json.dumps(serialize(obj, exclude_none), indent=indent, ensure_ascii=False, default=str)


class SerializableMixin:
    """
    Mixin providing ``to_dict``/``to_json`` driven by ``__serializable_fields__``.

    ``__field_aliases__`` optionally renames attributes in the output.
    """

    __serializable_fields__: List[str] = []
    __field_aliases__: Dict[str, str] = {}

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for name in self.__serializable_fields__:
            if hasattr(self, name):
                key = self.__field_aliases__.get(name, name)
                result[key] = serialize(getattr(self, name))
        return result

    def to_json(self, pretty: bool = False) -> str:
        return to_json(self.to_dict(), pretty)
