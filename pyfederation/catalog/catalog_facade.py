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
from typing import Callable, List, Optional, TypeVar, Union

from cachetools import TTLCache
from readerwriterlock import rwlock

from pyfederation.catalog.catalog import Catalog, PartitionLayout
from pyfederation.common.bounded_call import bounded_call
from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import (CatalogUnavailableException,
                                            FederationException)
from pyfederation.common.options import Options
from pyfederation.common.options.config import CatalogOptions
from pyfederation.common.table_name import TableName
from pyfederation.schema.schema import Schema
from pyfederation.schema.table_layout import TableLayout

T = TypeVar('T')

logger = logging.getLogger(__name__)


class CatalogFacade:
    """
    Typed metadata operations over a Catalog. Every lookup is bounded by
    catalog.timeout, transient failures surface as CatalogUnavailable and are
    never retried here.

    Table schemas and layouts may be cached for the life of the process. The
    cache is best effort, dropping it at any time changes no result beyond
    staleness within the configured TTL.
    """

    def __init__(self, catalog: Catalog, options: Union[Options, dict, None] = None):
        self.catalog = catalog
        self.options = options if isinstance(options, Options) else Options(options)
        self.timeout = self.options.get(CatalogOptions.TIMEOUT)
        self._cache: Optional[TTLCache] = None
        self._cache_lock = rwlock.RWLockFair()
        if self.options.get(CatalogOptions.CACHE_ENABLED):
            self._cache = TTLCache(maxsize=self.options.get(CatalogOptions.CACHE_MAX_SIZE),
                                   ttl=self.options.get(CatalogOptions.CACHE_TTL).total_seconds())

    def _call(self, operation: str, fn: Callable[..., T], *args) -> T:
        try:
            return bounded_call(operation, self.timeout, fn, *args)
        except FederationException:
            raise
        except (ConnectionError, OSError) as e:
            logger.warning("Catalog %s failed: %s", operation, e)
            raise CatalogUnavailableException(f"Catalog {operation} failed: {e}", e)

    def _cached(self, key, operation: str, fn: Callable[..., T], *args) -> T:
        if self._cache is None:
            return self._call(operation, fn, *args)

        rlock = self._cache_lock.gen_rlock()
        rlock.acquire()
        try:
            value = self._cache.get(key)
            if value is not None:
                return value
        finally:
            rlock.release()

        value = self._call(operation, fn, *args)
        wlock = self._cache_lock.gen_wlock()
        wlock.acquire()
        try:
            self._cache[key] = value
        finally:
            wlock.release()
        return value

    def list_schemas(self) -> List[str]:
        return list(self._call("list_schemas", self.catalog.list_schemas))

    def list_tables(self, schema_name: str) -> List[TableName]:
        return list(self._call("list_tables", self.catalog.list_tables, schema_name))

    def get_table(self, table_name: TableName) -> Schema:
        return self._cached(("table", table_name), "describe_table", self.catalog.describe_table, table_name)

    def get_table_layout(self, table_name: TableName, constraints: Optional[Constraints] = None) -> TableLayout:
        schema = self.get_table(table_name)
        if constraints is not None:
            constraints.check_columns(schema.field_names())
        layout: PartitionLayout = self._cached(
            ("layout", table_name), "describe_layout", self.catalog.describe_layout, table_name)
        return TableLayout(
            table_name=table_name,
            schema=schema,
            partition_cols=list(layout.partition_cols),
            partition_values={column: sorted(set(layout.partition_values.get(column, [])))
                              for column in layout.partition_cols})

    def invalidate(self):
        if self._cache is None:
            return
        wlock = self._cache_lock.gen_wlock()
        wlock.acquire()
        try:
            self._cache.clear()
        finally:
            wlock.release()
