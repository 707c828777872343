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
import uuid
from typing import Any, Dict, Optional

import pyarrow as pa

from pyfederation.schema.schema import Schema


class Block:
    """
    A record batch returned inline: the Arrow IPC schema message and the
    record batch message, each base64 encoded, tagged by an allocation id.
    """

    FIELD_A_ID = "aId"
    FIELD_SCHEMA = "schema"
    FIELD_RECORDS = "records"

    def __init__(self, records: pa.RecordBatch, a_id: Optional[str] = None):
        self.records = records
        self.a_id = a_id or str(uuid.uuid4())

    @property
    def schema(self) -> Schema:
        return Schema.from_pyarrow(self.records.schema)

    @property
    def num_rows(self) -> int:
        return self.records.num_rows

    @staticmethod
    def encoded_size(records: pa.RecordBatch) -> int:
        """Length of the base64 schema and records members, the size the inline limit applies to."""
        return sum(4 * ((buffer.size + 2) // 3) for buffer in (records.schema.serialize(), records.serialize()))

    def to_table(self) -> pa.Table:
        return pa.Table.from_batches([self.records])

    def to_dict(self) -> Dict[str, Any]:
        return {
            self.FIELD_A_ID: self.a_id,
            self.FIELD_SCHEMA: base64.b64encode(self.records.schema.serialize().to_pybytes()).decode('ascii'),
            self.FIELD_RECORDS: base64.b64encode(self.records.serialize().to_pybytes()).decode('ascii'),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Block":
        if not isinstance(data, dict):
            raise ValueError("Block must be a JSON object")
        for name in (cls.FIELD_A_ID, cls.FIELD_SCHEMA, cls.FIELD_RECORDS):
            if not isinstance(data.get(name), str):
                raise ValueError(f"Block is missing string member '{name}'")
        try:
            schema = pa.ipc.read_schema(pa.py_buffer(base64.b64decode(data[cls.FIELD_SCHEMA], validate=True)))
            records = pa.ipc.read_record_batch(
                pa.py_buffer(base64.b64decode(data[cls.FIELD_RECORDS], validate=True)), schema)
        except (binascii.Error, pa.ArrowException) as e:
            raise ValueError(f"Invalid Arrow block payload: {e}") from e
        return cls(records, data[cls.FIELD_A_ID])

    def __eq__(self, other):
        if not isinstance(other, Block):
            return False
        return (self.a_id == other.a_id
                and self.records.schema.equals(other.records.schema, check_metadata=True)
                and self.records.equals(other.records))

    def __repr__(self):
        return f"Block(aId={self.a_id}, rows={self.records.num_rows}, fields={self.records.schema.names})"
