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

import logging
import uuid
from typing import Callable, List, Optional, Tuple, Type, TypeVar, Union

import pyarrow as pa

from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import (ProtocolException,
                                            exception_from_kind)
from pyfederation.common.identity import FederatedIdentity
from pyfederation.common.table_name import TableName
from pyfederation.protocol.block import Block
from pyfederation.protocol.codec import decode_response, encode_request
from pyfederation.protocol.requests import (FederationRequest,
                                            GetSplitsRequest,
                                            GetTableLayoutRequest,
                                            GetTableRequest,
                                            ListSchemasRequest,
                                            ListTablesRequest, PingRequest,
                                            ReadRecordsRequest)
from pyfederation.protocol.responses import (ErrorResponse,
                                             FederationResponse,
                                             GetSplitsResponse,
                                             GetTableLayoutResponse,
                                             GetTableResponse,
                                             ListSchemasResponse,
                                             ListTablesResponse, PingResponse,
                                             ReadRecordsResponse)
from pyfederation.read.split import Split
from pyfederation.schema.schema import Schema
from pyfederation.schema.table_layout import TableLayout
from pyfederation.spill.spill_store import SpillStore

R = TypeVar('R', bound=FederationResponse)

logger = logging.getLogger(__name__)


class FederationClient:
    """
    The query engine side of the protocol: typed calls over a transport that
    delivers one payload and returns one payload. Error responses are raised
    as the matching FederationException.
    """

    def __init__(self, invoke: Callable[[bytes], bytes], catalog_name: str = "",
                 identity: Optional[FederatedIdentity] = None, query_id: Optional[str] = None):
        self.invoke = invoke
        self.catalog_name = catalog_name
        self.identity = identity or FederatedIdentity()
        self.query_id = query_id or str(uuid.uuid4())

    @staticmethod
    def _table_name(table_name: Union[str, TableName]) -> TableName:
        return table_name if isinstance(table_name, TableName) else TableName.from_string(table_name)

    def _envelope(self):
        return dict(identity=self.identity, query_id=self.query_id, catalog_name=self.catalog_name)

    def _call(self, request: FederationRequest, expected: Type[R]) -> R:
        response = decode_response(self.invoke(encode_request(request)))
        if isinstance(response, ErrorResponse):
            raise exception_from_kind(response.kind, response.message)
        if not isinstance(response, expected):
            raise ProtocolException(
                f"Expected {expected.__name__} for {type(request).__name__}, got {type(response).__name__}")
        return response

    def ping(self) -> PingResponse:
        return self._call(PingRequest(**self._envelope()), PingResponse)

    def list_schemas(self) -> List[str]:
        return self._call(ListSchemasRequest(**self._envelope()), ListSchemasResponse).schemas

    def list_tables(self, schema_name: str) -> List[TableName]:
        return self._call(ListTablesRequest(schema_name, **self._envelope()), ListTablesResponse).tables

    def get_table(self, table_name: Union[str, TableName]) -> Schema:
        request = GetTableRequest(self._table_name(table_name), **self._envelope())
        return self._call(request, GetTableResponse).schema

    def get_table_layout(self, table_name: Union[str, TableName],
                         constraints: Optional[Constraints] = None) -> TableLayout:
        request = GetTableLayoutRequest(self._table_name(table_name), constraints or Constraints.empty(),
                                        **self._envelope())
        return self._call(request, GetTableLayoutResponse).layout

    def get_splits(self, layout: TableLayout, constraints: Optional[Constraints] = None,
                   continuation_token: Optional[str] = None,
                   max_splits: Optional[int] = None) -> Tuple[List[Split], Optional[str]]:
        request = GetSplitsRequest(layout.table_name, layout, constraints or Constraints.empty(),
                                   continuation_token, max_splits, **self._envelope())
        response = self._call(request, GetSplitsResponse)
        return response.splits, response.continuation_token

    def get_all_splits(self, layout: TableLayout, constraints: Optional[Constraints] = None,
                       max_splits: Optional[int] = None) -> List[Split]:
        splits, token = self.get_splits(layout, constraints, None, max_splits)
        while token is not None:
            page, token = self.get_splits(layout, constraints, token, max_splits)
            splits.extend(page)
        return splits

    def read_records(self, table_name: Union[str, TableName], schema: Schema, split: Split,
                     constraints: Optional[Constraints] = None,
                     max_block_size: Optional[int] = None,
                     max_inline_block_size: Optional[int] = None) -> ReadRecordsResponse:
        """A response whose error is set holds the batches produced before the scan stopped."""
        request = ReadRecordsRequest(self._table_name(table_name), schema, split,
                                     constraints or Constraints.empty(), max_block_size, max_inline_block_size,
                                     **self._envelope())
        response = self._call(request, ReadRecordsResponse)
        if response.error is not None:
            logger.warning("Split %s returned %s entries before %s", split.id, len(response.entries),
                           response.error.kind)
        return response

    @staticmethod
    def to_table(response: ReadRecordsResponse, schema: Schema,
                 spill_store: Optional[SpillStore] = None) -> pa.Table:
        """Reassembles the rows of a read in scan order, fetching spilled batches."""
        tables = []
        for entry in response.entries:
            if isinstance(entry, Block):
                tables.append(entry.to_table())
            else:
                if spill_store is None:
                    raise ValueError("A spill store is needed to fetch spilled batches")
                tables.append(spill_store.read_table(entry))
        if not tables:
            return schema.to_pyarrow().empty_table()
        return pa.concat_tables(tables)
