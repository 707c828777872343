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

import base64
import binascii
from typing import Any, Dict, List, Optional

import pyarrow as pa

from pyfederation.catalog.catalog_exception import ColumnNotExistException
from pyfederation.schema.data_types import (DataField, PyarrowFieldParser,
                                            check_unique_names)


class Schema:
    """
    Ordered fields plus string metadata, backed by a pyarrow schema. On the
    wire it travels as a base64 Arrow IPC schema message.
    """

    FIELD_SCHEMA = "schema"

    def __init__(self, pa_schema: pa.Schema):
        check_unique_names(pa_schema.names)
        # converting validates every nested level and rejects unsupported types
        self._fields = [PyarrowFieldParser.to_federation_field(pa_field) for pa_field in pa_schema]
        self._pa_schema = pa_schema

    @staticmethod
    def from_pyarrow(pa_schema: pa.Schema) -> "Schema":
        return Schema(pa_schema)

    @staticmethod
    def from_fields(fields: List[DataField], metadata: Optional[Dict[str, str]] = None) -> "Schema":
        pa_schema = pa.schema([PyarrowFieldParser.from_federation_field(f) for f in fields], metadata=metadata)
        return Schema(pa_schema)

    @property
    def fields(self) -> List[DataField]:
        return list(self._fields)

    @property
    def metadata(self) -> Dict[str, str]:
        if not self._pa_schema.metadata:
            return {}
        return {k.decode('utf-8'): v.decode('utf-8') for k, v in self._pa_schema.metadata.items()}

    def field_names(self) -> List[str]:
        return list(self._pa_schema.names)

    def field(self, name: str) -> DataField:
        for data_field in self._fields:
            if data_field.name == name:
                return data_field
        raise ColumnNotExistException(name)

    def contains(self, name: str) -> bool:
        return name in self._pa_schema.names

    def project(self, names: List[str]) -> "Schema":
        """Keeps the named fields in the order given."""
        for name in names:
            if name not in self._pa_schema.names:
                raise ColumnNotExistException(name)
        return Schema(pa.schema([self._pa_schema.field(name) for name in names],
                                metadata=self._pa_schema.metadata))

    def to_pyarrow(self) -> pa.Schema:
        return self._pa_schema

    def serialize(self) -> bytes:
        return self._pa_schema.serialize().to_pybytes()

    @staticmethod
    def deserialize(data: bytes) -> "Schema":
        return Schema(pa.ipc.read_schema(pa.py_buffer(data)))

    def to_dict(self) -> Dict[str, Any]:
        return {self.FIELD_SCHEMA: base64.b64encode(self.serialize()).decode('ascii')}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Schema":
        if not isinstance(data, dict) or not isinstance(data.get(cls.FIELD_SCHEMA), str):
            raise ValueError("Schema must be an object with a base64 'schema' member")
        try:
            raw = base64.b64decode(data[cls.FIELD_SCHEMA], validate=True)
            return cls.deserialize(raw)
        except (binascii.Error, pa.ArrowException) as e:
            raise ValueError(f"Invalid Arrow schema payload: {e}") from e

    def __eq__(self, other):
        if not isinstance(other, Schema):
            return False
        return self._pa_schema.equals(other._pa_schema, check_metadata=True)

    def __hash__(self):
        return hash(tuple(self._pa_schema.names))

    def __repr__(self):
        return "Schema({})".format(", ".join(f"{f.name}: {f.type}" for f in self._fields))
