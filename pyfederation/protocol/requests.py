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
from dataclasses import dataclass
from typing import Optional

from pyfederation.common.constraints import Constraints
from pyfederation.common.identity import FederatedIdentity
from pyfederation.common.json_util import json_field, optional_json_field
from pyfederation.common.table_name import TableName
from pyfederation.read.split import Split
from pyfederation.schema.schema import Schema
from pyfederation.schema.table_layout import TableLayout

FIELD_IDENTITY = "identity"
FIELD_QUERY_ID = "queryId"
FIELD_CATALOG_NAME = "catalogName"


class FederationRequest(ABC):
    """Every request names the querying identity, the query and the catalog."""


@dataclass
class PingRequest(FederationRequest):
    identity: FederatedIdentity = json_field(FIELD_IDENTITY, default_factory=FederatedIdentity)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class ListSchemasRequest(FederationRequest):
    identity: FederatedIdentity = json_field(FIELD_IDENTITY, default_factory=FederatedIdentity)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class ListTablesRequest(FederationRequest):
    FIELD_SCHEMA_NAME = "schemaName"

    schema_name: str = json_field(FIELD_SCHEMA_NAME)
    identity: FederatedIdentity = json_field(FIELD_IDENTITY, default_factory=FederatedIdentity)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class GetTableRequest(FederationRequest):
    FIELD_TABLE_NAME = "tableName"

    table_name: TableName = json_field(FIELD_TABLE_NAME)
    identity: FederatedIdentity = json_field(FIELD_IDENTITY, default_factory=FederatedIdentity)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class GetTableLayoutRequest(FederationRequest):
    FIELD_TABLE_NAME = "tableName"
    FIELD_CONSTRAINTS = "constraints"

    table_name: TableName = json_field(FIELD_TABLE_NAME)
    constraints: Constraints = json_field(FIELD_CONSTRAINTS, default_factory=Constraints)
    identity: FederatedIdentity = json_field(FIELD_IDENTITY, default_factory=FederatedIdentity)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class GetSplitsRequest(FederationRequest):
    FIELD_TABLE_NAME = "tableName"
    FIELD_LAYOUT = "layout"
    FIELD_CONSTRAINTS = "constraints"
    FIELD_CONTINUATION_TOKEN = "continuationToken"
    FIELD_MAX_SPLITS = "maxSplits"

    table_name: TableName = json_field(FIELD_TABLE_NAME)
    layout: TableLayout = json_field(FIELD_LAYOUT)
    constraints: Constraints = json_field(FIELD_CONSTRAINTS, default_factory=Constraints)
    continuation_token: Optional[str] = optional_json_field(FIELD_CONTINUATION_TOKEN)
    max_splits: Optional[int] = optional_json_field(FIELD_MAX_SPLITS)
    identity: FederatedIdentity = json_field(FIELD_IDENTITY, default_factory=FederatedIdentity)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


@dataclass
class ReadRecordsRequest(FederationRequest):
    FIELD_TABLE_NAME = "tableName"
    FIELD_SCHEMA = "schema"
    FIELD_SPLIT = "split"
    FIELD_CONSTRAINTS = "constraints"
    FIELD_MAX_BLOCK_SIZE = "maxBlockSize"
    FIELD_MAX_INLINE_BLOCK_SIZE = "maxInlineBlockSize"

    table_name: TableName = json_field(FIELD_TABLE_NAME)
    schema: Schema = json_field(FIELD_SCHEMA)
    split: Split = json_field(FIELD_SPLIT)
    constraints: Constraints = json_field(FIELD_CONSTRAINTS, default_factory=Constraints)
    # absent limits fall back to the read.* options of the serving side
    max_block_size: Optional[int] = optional_json_field(FIELD_MAX_BLOCK_SIZE)
    max_inline_block_size: Optional[int] = optional_json_field(FIELD_MAX_INLINE_BLOCK_SIZE)
    identity: FederatedIdentity = json_field(FIELD_IDENTITY, default_factory=FederatedIdentity)
    query_id: str = json_field(FIELD_QUERY_ID, default="")
    catalog_name: str = json_field(FIELD_CATALOG_NAME, default="")


REQUEST_TYPES = {
    clazz.__name__: clazz
    for clazz in (PingRequest, ListSchemasRequest, ListTablesRequest, GetTableRequest,
                  GetTableLayoutRequest, GetSplitsRequest, ReadRecordsRequest)
}
