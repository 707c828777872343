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

from pyfederation.catalog.catalog import Catalog
from pyfederation.catalog.catalog_facade import CatalogFacade
from pyfederation.catalog.catalog_factory import CatalogFactory
from pyfederation.catalog.memory_catalog import MemoryCatalog
from pyfederation.client import FederationClient
from pyfederation.common.constraints import Constraints
from pyfederation.common.predicate_builder import PredicateBuilder
from pyfederation.common.table_name import TableName
from pyfederation.dispatcher import Dispatcher
from pyfederation.handler import FederationHandler
from pyfederation.read.reader.data_source import DataSource, RowDataSource
from pyfederation.schema.schema import Schema

__version__ = "0.1.dev"

__all__ = [
    "Catalog",
    "CatalogFacade",
    "CatalogFactory",
    "Constraints",
    "DataSource",
    "Dispatcher",
    "FederationClient",
    "FederationHandler",
    "MemoryCatalog",
    "PredicateBuilder",
    "RowDataSource",
    "Schema",
    "TableName",
]
