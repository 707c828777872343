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

from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pyfederation.common.json_util import JSON, json_field, optional_json_field
from pyfederation.common.table_name import TableName
from pyfederation.protocol.block import Block
from pyfederation.read.split import Split
from pyfederation.schema.schema import Schema
from pyfederation.schema.table_layout import TableLayout
from pyfederation.spill.spill_location import SpillLocator

FIELD_CATALOG_NAME = "catalogName"
FIELD_TYPE = "@type"

ReadEntry = Union[Block, SpillLocator]


class FederationResponse(ABC):
    """Marker of every response kind."""


@dataclass
class ErrorResponse(FederationResponse):
    FIELD_KIND = "kind"
    FIELD_MESSAGE = "message"

    kind: str = json_field(FIELD_KIND)
    message: str = json_field(FIELD_MESSAGE, default="")


@dataclass
class PingResponse(FederationResponse):
    FIELD_SOURCE_TYPE = "sourceType"
    FIELD_MIN_VERSION = "minVersion"
    FIELD_MAX_VERSION = "maxVersion"
    FIELD_QUERY_ID = "queryId"

    source_type: str = json_field(FIELD_SOURCE_TYPE)
    min_version: int = json_field(FIELD_MIN_VERSION)
    max_version: int = json_field(FIELD_MAX_VERSION)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class ListSchemasResponse(FederationResponse):
    FIELD_SCHEMAS = "schemas"

    schemas: List[str] = json_field(FIELD_SCHEMAS, default_factory=list)
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class ListTablesResponse(FederationResponse):
    FIELD_TABLES = "tables"

    tables: List[TableName] = json_field(FIELD_TABLES, default_factory=list)
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class GetTableResponse(FederationResponse):
    FIELD_TABLE_NAME = "tableName"
    FIELD_SCHEMA = "schema"

    table_name: TableName = json_field(FIELD_TABLE_NAME)
    schema: Schema = json_field(FIELD_SCHEMA)
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class GetTableLayoutResponse(FederationResponse):
    FIELD_LAYOUT = "layout"

    layout: TableLayout = json_field(FIELD_LAYOUT)
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class GetSplitsResponse(FederationResponse):
    FIELD_SPLITS = "splits"
    FIELD_CONTINUATION_TOKEN = "continuationToken"

    splits: List[Split] = json_field(FIELD_SPLITS, default_factory=list)
    continuation_token: Optional[str] = optional_json_field(FIELD_CONTINUATION_TOKEN)
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class ReadRecordsResponse(FederationResponse):
    """
    The batches of one split in scan order, each inline or spilled. When the
    scan stopped early, error carries the reason and entries what was
    produced before it.
    """

    FIELD_RECORDS = "records"
    FIELD_ERROR = "error"

    entries: List[ReadEntry] = field(default_factory=list)
    error: Optional[ErrorResponse] = None
    catalog_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        records = []
        for entry in self.entries:
            record = {FIELD_TYPE: type(entry).__name__}
            record.update(JSON.to_dict(entry))
            records.append(record)
        result = {self.FIELD_RECORDS: records, FIELD_CATALOG_NAME: self.catalog_name}
        if self.error is not None:
            result[self.FIELD_ERROR] = JSON.to_dict(self.error)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReadRecordsResponse":
        if not isinstance(data, dict):
            raise ValueError("ReadRecordsResponse must be a JSON object")
        records = data.get(cls.FIELD_RECORDS, [])
        if not isinstance(records, list):
            raise ValueError("ReadRecordsResponse records must be a JSON array")
        entries = []
        for record in records:
            entry_type = record.get(FIELD_TYPE) if isinstance(record, dict) else None
            if entry_type == Block.__name__:
                entries.append(Block.from_dict(record))
            elif entry_type == SpillLocator.__name__:
                entries.append(JSON.from_dict(record, SpillLocator))
            else:
                raise ValueError(f"Unknown record entry type: {entry_type}")
        error = data.get(cls.FIELD_ERROR)
        catalog_name = data.get(FIELD_CATALOG_NAME, "")
        if not isinstance(catalog_name, str):
            raise ValueError("catalogName must be a string")
        return cls(entries=entries,
                   error=JSON.from_dict(error, ErrorResponse) if error is not None else None,
                   catalog_name=catalog_name)


RESPONSE_TYPES = {
    clazz.__name__: clazz
    for clazz in (ErrorResponse, PingResponse, ListSchemasResponse, ListTablesResponse, GetTableResponse,
                  GetTableLayoutResponse, GetSplitsResponse, ReadRecordsResponse)
}
