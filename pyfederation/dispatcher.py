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
from typing import Callable, Dict, Type, Union

from pyfederation.catalog.catalog_facade import CatalogFacade
from pyfederation.common.exceptions import (FederationException,
                                            MalformedRequestException)
from pyfederation.common.options import Options
from pyfederation.common.options.config import ProtocolOptions
from pyfederation.protocol.requests import (REQUEST_TYPES, FederationRequest,
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
from pyfederation.read.batch_executor import BatchExecutor
from pyfederation.read.split_planner import SplitPlanner

logger = logging.getLogger(__name__)

INTERNAL_ERROR_KIND = "Internal"


def error_response(e: BaseException) -> ErrorResponse:
    if isinstance(e, FederationException):
        return ErrorResponse(e.kind, e.get_message())
    return ErrorResponse(INTERNAL_ERROR_KIND, f"{type(e).__name__}: {e}")


class Dispatcher:
    """
    Routes each request kind to its handler and wraps the outcome, errors
    included, into a response. Holds no per-request state.
    """

    def __init__(self, catalog: CatalogFacade, planner: SplitPlanner, executor: BatchExecutor,
                 options: Union[Options, dict, None] = None):
        self.catalog = catalog
        self.planner = planner
        self.executor = executor
        self.options = options if isinstance(options, Options) else Options(options)
        self.handlers: Dict[Type[FederationRequest], Callable[[FederationRequest], FederationResponse]] = {
            PingRequest: self._ping,
            ListSchemasRequest: self._list_schemas,
            ListTablesRequest: self._list_tables,
            GetTableRequest: self._get_table,
            GetTableLayoutRequest: self._get_table_layout,
            GetSplitsRequest: self._get_splits,
            ReadRecordsRequest: self._read_records,
        }
        missing = [name for name, clazz in REQUEST_TYPES.items() if clazz not in self.handlers]
        if missing:
            raise ValueError(f"No handler for request kinds: {missing}")

    def handle(self, request: FederationRequest) -> FederationResponse:
        handler = self.handlers.get(type(request))
        if handler is None:
            return ErrorResponse("UnsupportedOperation", f"Unsupported operation: {type(request).__name__}")
        try:
            return handler(request)
        except FederationException as e:
            logger.info("%s failed with %s: %s", type(request).__name__, e.kind, e)
            return error_response(e)
        except Exception as e:
            logger.exception("%s failed unexpectedly", type(request).__name__)
            return error_response(e)

    def _ping(self, request: PingRequest) -> PingResponse:
        return PingResponse(self.options.get(ProtocolOptions.SOURCE_TYPE), ProtocolOptions.MIN_VERSION,
                            ProtocolOptions.MAX_VERSION, request.query_id, request.catalog_name)

    def _list_schemas(self, request: ListSchemasRequest) -> ListSchemasResponse:
        return ListSchemasResponse(self.catalog.list_schemas(), request.catalog_name)

    def _list_tables(self, request: ListTablesRequest) -> ListTablesResponse:
        return ListTablesResponse(self.catalog.list_tables(request.schema_name), request.catalog_name)

    def _get_table(self, request: GetTableRequest) -> GetTableResponse:
        return GetTableResponse(request.table_name, self.catalog.get_table(request.table_name),
                                request.catalog_name)

    def _get_table_layout(self, request: GetTableLayoutRequest) -> GetTableLayoutResponse:
        layout = self.catalog.get_table_layout(request.table_name, request.constraints)
        return GetTableLayoutResponse(layout, request.catalog_name)

    def _get_splits(self, request: GetSplitsRequest) -> GetSplitsResponse:
        if request.layout.table_name != request.table_name:
            raise MalformedRequestException(
                f"Layout of {request.layout.table_name} sent for table {request.table_name}")
        splits, token = self.planner.plan(request.layout, request.constraints, request.continuation_token,
                                          request.max_splits, request.query_id)
        return GetSplitsResponse(splits, token, request.catalog_name)

    def _read_records(self, request: ReadRecordsRequest) -> FederationResponse:
        table_schema = self.catalog.get_table(request.table_name)
        result = self.executor.execute(request.split, request.schema, request.constraints, table_schema,
                                       request.max_block_size, request.max_inline_block_size)
        if result.error is not None and not result.entries:
            return error_response(result.error)
        error = error_response(result.error) if result.error is not None else None
        return ReadRecordsResponse(result.entries, error, request.catalog_name)
