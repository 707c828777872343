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

"""Column types a federated table may declare, and their Arrow counterparts."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import pyarrow
from pyarrow import types


NOT_NULL = " NOT NULL"

# canonical name -> arrow type; aliases are folded into the canonical name on parse
_ARROW_BY_NAME = {
    "INT": pyarrow.int32(),
    "BIGINT": pyarrow.int64(),
    "FLOAT": pyarrow.float32(),
    "DOUBLE": pyarrow.float64(),
    "BOOLEAN": pyarrow.bool_(),
    "STRING": pyarrow.string(),
    "BYTES": pyarrow.binary(),
    "TIMESTAMP": pyarrow.timestamp('ms'),
}
_ALIASES = {"INTEGER": "INT", "VARCHAR": "STRING", "VARBINARY": "BYTES"}
_TIMESTAMP_PATTERN = re.compile(r'TIMESTAMP\((\d)\)')
_PRECISION_BY_UNIT = {'s': 0, 'ms': 3, 'us': 6, 'ns': 9}


def _unit_for_precision(precision: int) -> str:
    if precision == 0:
        return 's'
    if precision <= 3:
        return 'ms'
    return 'us' if precision <= 6 else 'ns'


def _suffix(nullable: bool) -> str:
    return "" if nullable else NOT_NULL


class DataType(ABC):
    def __init__(self, nullable: bool = True):
        self.nullable = nullable

    @abstractmethod
    def to_dict(self) -> Union[str, Dict[str, Any]]:
        """Json form used by file-backed table declarations."""

    @abstractmethod
    def __str__(self) -> str:
        pass


@dataclass
class AtomicType(DataType):
    type: str

    def __init__(self, type: str, nullable: bool = True):
        super().__init__(nullable)
        self.type = type

    def to_dict(self) -> str:
        return str(self)

    @classmethod
    def from_dict(cls, data: str) -> "AtomicType":
        return DataTypeParser.parse_data_type(data)

    def __str__(self) -> str:
        return self.type + _suffix(self.nullable)


@dataclass
class ArrayType(DataType):
    element: DataType

    def __init__(self, nullable: bool, element_type: DataType):
        super().__init__(nullable)
        self.element = element_type

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "ARRAY" + _suffix(self.nullable), "element": self.element.to_dict()}

    def __str__(self) -> str:
        return "ARRAY<{}>{}".format(self.element, _suffix(self.nullable))


@dataclass
class DataField:
    """A named column. The description travels as arrow field metadata."""

    name: str
    type: DataType
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataField":
        return DataTypeParser.parse_data_field(data)

    def to_dict(self) -> Dict[str, Any]:
        declared = {"name": self.name, "type": self.type.to_dict()}
        if self.description is not None:
            declared["description"] = self.description
        return declared


@dataclass
class RowType(DataType):
    fields: List[DataField]

    def __init__(self, nullable: bool, fields: List[DataField]):
        super().__init__(nullable)
        self.fields = fields or []
        check_unique_names([f.name for f in self.fields])

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "ROW" + _suffix(self.nullable), "fields": [f.to_dict() for f in self.fields]}

    def __str__(self) -> str:
        members = ', '.join("{}: {}".format(f.name, f.type) for f in self.fields)
        return "ROW<{}>{}".format(members, _suffix(self.nullable))


def check_unique_names(names: List[str]):
    seen = set()
    for name in names:
        if not name:
            raise ValueError("Column name must not be empty")
        if name in seen:
            raise ValueError("Duplicate column name: {}".format(name))
        seen.add(name)


class DataTypeParser:

    @staticmethod
    def parse_data_type(declared: Union[Dict[str, Any], str]) -> DataType:
        if isinstance(declared, str):
            return DataTypeParser._parse_atomic(declared)
        if not isinstance(declared, dict) or not isinstance(declared.get("type"), str):
            raise ValueError("Cannot parse column type: {}".format(declared))

        head = declared["type"].upper().strip()
        nullable = not head.endswith(NOT_NULL)
        if head.startswith("ARRAY"):
            if "element" not in declared:
                raise ValueError("Array type without element: {}".format(declared))
            return ArrayType(nullable, DataTypeParser.parse_data_type(declared["element"]))
        if head.startswith("ROW"):
            return RowType(nullable, [DataTypeParser.parse_data_field(f) for f in declared.get("fields", [])])
        return DataTypeParser._parse_atomic(head)

    @staticmethod
    def parse_data_field(declared: Dict[str, Any]) -> DataField:
        for key in ("name", "type"):
            if key not in declared:
                raise ValueError("Column declaration without '{}': {}".format(key, declared))
        return DataField(declared["name"], DataTypeParser.parse_data_type(declared["type"]),
                         declared.get("description"))

    @staticmethod
    def _parse_atomic(type_string: str) -> AtomicType:
        name = type_string.upper().strip()
        nullable = True
        if name.endswith(NOT_NULL):
            name, nullable = name[:-len(NOT_NULL)].strip(), False
        elif name.endswith(" NULL"):
            name = name[:-len(" NULL")].strip()
        name = _ALIASES.get(name, name)
        if name not in _ARROW_BY_NAME and not _TIMESTAMP_PATTERN.fullmatch(name):
            raise ValueError("Unknown column type: {}".format(type_string))
        return AtomicType(name, nullable)


class PyarrowFieldParser:
    """Converts column declarations to arrow fields and back."""

    @staticmethod
    def from_federation_type(data_type: DataType) -> pyarrow.DataType:
        if isinstance(data_type, ArrayType):
            return pyarrow.list_(PyarrowFieldParser.from_federation_type(data_type.element))
        if isinstance(data_type, RowType):
            return pyarrow.struct([PyarrowFieldParser.from_federation_field(f) for f in data_type.fields])
        if isinstance(data_type, AtomicType):
            name = data_type.type.upper()
            if name in _ARROW_BY_NAME:
                return _ARROW_BY_NAME[name]
            match = _TIMESTAMP_PATTERN.fullmatch(name)
            if match:
                return pyarrow.timestamp(_unit_for_precision(int(match.group(1))))
        raise ValueError("Column type has no arrow mapping: {}".format(data_type))

    @staticmethod
    def from_federation_field(data_field: DataField) -> pyarrow.Field:
        metadata = None
        if data_field.description:
            metadata = {b'description': data_field.description.encode('utf-8')}
        return pyarrow.field(data_field.name, PyarrowFieldParser.from_federation_type(data_field.type),
                             nullable=data_field.type.nullable, metadata=metadata)

    @staticmethod
    def to_federation_type(pa_type: pyarrow.DataType, nullable: bool) -> DataType:
        if types.is_list(pa_type):
            element = pa_type.value_field
            return ArrayType(nullable, PyarrowFieldParser.to_federation_type(element.type, element.nullable))
        if types.is_struct(pa_type):
            return RowType(nullable, [PyarrowFieldParser.to_federation_field(pa_type.field(i))
                                      for i in range(pa_type.num_fields)])
        if types.is_timestamp(pa_type) and pa_type.tz is None:
            return AtomicType("TIMESTAMP({})".format(_PRECISION_BY_UNIT[pa_type.unit]), nullable)
        for name, arrow_type in _ARROW_BY_NAME.items():
            if name != "TIMESTAMP" and pa_type == arrow_type:
                return AtomicType(name, nullable)
        raise ValueError("Arrow type {} cannot be exposed as a column".format(pa_type))

    @staticmethod
    def to_federation_field(pa_field: pyarrow.Field) -> DataField:
        description = None
        if pa_field.metadata and b'description' in pa_field.metadata:
            description = pa_field.metadata[b'description'].decode('utf-8')
        return DataField(pa_field.name, PyarrowFieldParser.to_federation_type(pa_field.type, pa_field.nullable),
                         description)
