################################################################################
#  Licensed to the Apache Software Foundation (ASF) under one
#  or more contributor license agreements.  See the NOTICE file
#  distributed with this work for additional information
#  regarding copyright ownership.  The ASF licenses this file
#  to you under the Apache License, Version 2.0 (the
#  "License"); you may not use this file except in compliance
#  with the License.  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
# limitations under the License.
################################################################################

import json
from dataclasses import MISSING, field, fields, is_dataclass
from typing import Any, Dict, List, Type, TypeVar, Union

T = TypeVar("T")


def json_field(json_name: str, **kwargs):
    """Create a field with custom JSON name"""
    return field(metadata={"json_name": json_name}, **kwargs)


def optional_json_field(json_name: str, **kwargs):
    """Create a field that is left out of the JSON document when None"""
    kwargs.setdefault("default", None)
    return field(metadata={"json_name": json_name, "json_include": "non_null"}, **kwargs)


def _is_optional(field_type) -> bool:
    return _unwrap_optional(field_type) is not field_type or field_type is Any


def _unwrap_optional(field_type):
    origin_type = getattr(field_type, '__origin__', None)
    args = getattr(field_type, '__args__', None)
    if origin_type is Union and args and len(args) == 2 and type(None) in args:
        return args[0] if args[1] is type(None) else args[1]
    return field_type


class JSON:

    @staticmethod
    def to_json(obj: Any, **kwargs) -> str:
        """Convert to JSON string"""
        return json.dumps(JSON.to_dict(obj), ensure_ascii=False, **kwargs)

    @staticmethod
    def from_json(json_str: str, target_class: Type[T]) -> T:
        """Create instance from JSON string"""
        data = json.loads(json_str)
        return JSON.from_dict(data, target_class)

    @staticmethod
    def to_dict(obj: Any) -> Dict[str, Any]:
        """Convert to dictionary with custom field names"""
        if hasattr(obj, "to_dict") and callable(getattr(obj, "to_dict")):
            return obj.to_dict()

        result = {}
        for field_info in fields(obj):
            field_value = getattr(obj, field_info.name)
            json_name = field_info.metadata.get("json_name", field_info.name)

            if field_value is None and field_info.metadata.get("json_include") == "non_null":
                continue

            result[json_name] = JSON._to_value(field_value)

        return result

    @staticmethod
    def _to_value(value: Any) -> Any:
        if hasattr(value, "to_dict"):
            return value.to_dict()
        if is_dataclass(value):
            return JSON.to_dict(value)
        if isinstance(value, list):
            return [JSON._to_value(item) for item in value]
        if isinstance(value, dict):
            return {key: JSON._to_value(item) for key, item in value.items()}
        return value

    @staticmethod
    def from_dict(data: Dict[str, Any], target_class: Type[T]) -> T:
        """Create instance from dictionary, unknown keys are ignored"""
        if hasattr(target_class, "from_dict") and callable(getattr(target_class, "from_dict")):
            return target_class.from_dict(data)

        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object for {target_class.__name__}, got {type(data).__name__}")

        field_mapping = {}
        for field_info in fields(target_class):
            if not field_info.init:
                continue
            json_name = field_info.metadata.get("json_name", field_info.name)
            field_mapping[json_name] = field_info

        kwargs = {}
        for json_name, value in data.items():
            field_info = field_mapping.get(json_name)
            if field_info is None:
                continue
            if value is None and not _is_optional(field_info.type):
                if field_info.default is MISSING and field_info.default_factory is MISSING:
                    raise ValueError(f"Field {json_name} of {target_class.__name__} must not be null")
                # null stands for the default
                continue
            kwargs[field_info.name] = JSON._from_value(value, field_info.type)

        missing = [f.name for f in field_mapping.values()
                   if f.default is MISSING and f.default_factory is MISSING and f.name not in kwargs]
        if missing:
            raise ValueError(f"Missing required fields {missing} for {target_class.__name__}")
        return target_class(**kwargs)

    @staticmethod
    def _from_value(value: Any, field_type: Any) -> Any:
        if value is None:
            return None
        field_type = _unwrap_optional(field_type)
        origin_type = getattr(field_type, '__origin__', None)
        args = getattr(field_type, '__args__', None) or ()

        if is_dataclass(field_type) or hasattr(field_type, "from_dict"):
            return JSON.from_dict(value, field_type)
        if origin_type in (list, List) and args:
            if not isinstance(value, list):
                raise ValueError(f"Expected a JSON array, got {type(value).__name__}")
            return [JSON._from_value(item, args[0]) for item in value]
        if origin_type in (dict, Dict) and len(args) == 2:
            if not isinstance(value, dict):
                raise ValueError(f"Expected a JSON object, got {type(value).__name__}")
            return {key: JSON._from_value(item, args[1]) for key, item in value.items()}
        if field_type in _PRIMITIVES and not _is_instance(value, field_type):
            raise ValueError(f"Expected {field_type.__name__}, got {type(value).__name__}")
        return value


_PRIMITIVES = (str, int, float, bool)


def _is_instance(value: Any, primitive: type) -> bool:
    if primitive is bool:
        return isinstance(value, bool)
    if primitive is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if primitive is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, primitive)
