"""
Serialization Utilities

This module provides utilities for serializing objects across the package,
with support for complex types like datetime and enums, plus the canonical
JSON form used when checksumming stored snapshots.
"""

import json
import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union, TypeVar
from dataclasses import is_dataclass, asdict

# Type variable for generic typing
T = TypeVar('T')


class SerializationFormat(Enum):
    """Supported serialization formats."""
    JSON = "json"
    DICT = "dict"


def serialize(
    obj: Any,
    format: SerializationFormat = SerializationFormat.DICT,
    exclude_none: bool = False,
    exclude_fields: Optional[List[str]] = None
) -> Union[Dict[str, Any], str]:
    """
    Serialize an object to the specified format.

    Args:
        obj: The object to serialize
        format: Output format (JSON string or Python dict)
        exclude_none: Whether to exclude None values
        exclude_fields: Optional list of field names to exclude

    Returns:
        Serialized object as a dict or JSON string
    """
    exclude_fields = exclude_fields or []

    if obj is None:
        return None if format == SerializationFormat.DICT else "null"

    # Enum before primitives: str-based enums are also str instances
    if isinstance(obj, Enum):
        return obj.value if format == SerializationFormat.DICT else json.dumps(obj.value)

    if isinstance(obj, (str, int, float, bool)):
        return obj if format == SerializationFormat.DICT else json.dumps(obj)

    if isinstance(obj, (datetime.datetime, datetime.date)):
        iso = obj.isoformat()
        return iso if format == SerializationFormat.DICT else json.dumps(iso)

    if isinstance(obj, (list, tuple)):
        serialized_list = [
            serialize(item, SerializationFormat.DICT, exclude_none, exclude_fields)
            for item in obj
        ]
        return serialized_list if format == SerializationFormat.DICT else json.dumps(serialized_list)

    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if isinstance(key, Enum):
                key = key.value
            if key in exclude_fields:
                continue
            if exclude_none and value is None:
                continue
            result[key] = serialize(value, SerializationFormat.DICT, exclude_none, exclude_fields)
        return result if format == SerializationFormat.DICT else json.dumps(result)

    # Objects that know how to serialize themselves come before plain dataclasses
    if hasattr(obj, 'to_dict') and callable(getattr(obj, 'to_dict')):
        return serialize(obj.to_dict(), format, exclude_none, exclude_fields)

    if is_dataclass(obj):
        return serialize(asdict(obj), format, exclude_none, exclude_fields)

    if hasattr(obj, '__dict__'):
        obj_dict = {
            k: v for k, v in obj.__dict__.items()
            if not k.startswith('_') and k not in exclude_fields
        }
        return serialize(obj_dict, format, exclude_none, exclude_fields)

    return str(obj) if format == SerializationFormat.DICT else json.dumps(str(obj))


def to_json(obj: Any, pretty: bool = False, exclude_none: bool = False) -> str:
    """
    Serialize an object to a JSON string.

    Args:
        obj: The object to serialize
        pretty: Whether to format the JSON with indentation
        exclude_none: Whether to exclude None values

    Returns:
        JSON string representation
    """
    indent = 2 if pretty else None
    dict_data = serialize(obj, SerializationFormat.DICT, exclude_none)
    return json.dumps(dict_data, indent=indent, ensure_ascii=False, default=str)


def canonical_json(data: Any) -> str:
    """
    Serialize data to a canonical JSON string.

    Keys are sorted and separators are compact, so equal data always yields
    byte-identical output. This is the form that checksums are computed over.

    Args:
        data: JSON-compatible data (or anything ``serialize`` accepts)

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        serialize(data, SerializationFormat.DICT),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )


class SerializableMixin:
    """
    Mixin that provides serialization capabilities to a class.

    Classes using this mixin must define:
    1. __serializable_fields__ - list of field names to include in serialization
    2. __optional_fields__ - list of field names that may be absent; they are
       left out of ``to_dict`` output when their value is None
    """

    __serializable_fields__: List[str] = []
    __optional_fields__: List[str] = []

    def to_dict(self) -> Dict[str, Any]:
        """Convert the object to a dictionary."""
        result = {}
        for field in self.__serializable_fields__:
            if not hasattr(self, field):
                continue
            value = getattr(self, field)
            if value is None and field in self.__optional_fields__:
                continue
            result[field] = serialize(value, SerializationFormat.DICT)
        return result

    def to_json(self, pretty: bool = False) -> str:
        """Convert the object to a JSON string."""
        return to_json(self.to_dict(), pretty)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SerializableMixin':
        """Create an instance from a dictionary."""
        init_kwargs = {}
        for field in cls.__serializable_fields__:
            if field in data:
                init_kwargs[field] = data[field]
            elif field not in cls.__optional_fields__:
                raise ValueError(f"Missing required field: {field}")

        return cls(**init_kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> 'SerializableMixin':
        """Create an instance from a JSON string."""
        data = json.loads(json_str)
        return cls.from_dict(data)
