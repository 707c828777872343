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
import os
import shutil
import tempfile
import threading
import unittest
from unittest.mock import Mock

import pyarrow as pa

from pyfederation.catalog.catalog_exception import (ColumnNotExistException,
                                                    SchemaNotExistException,
                                                    TableNotExistException)
from pyfederation.catalog.catalog_facade import CatalogFacade
from pyfederation.catalog.catalog_factory import CatalogFactory
from pyfederation.catalog.memory_catalog import MemoryCatalog
from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import (CatalogUnavailableException,
                                            OperationTimeoutException)
from pyfederation.common.predicate_builder import PredicateBuilder
from pyfederation.common.table_name import TableName
from pyfederation.schema.schema import Schema

DECLARATION = {
    "schemas": {
        "sales": {"tables": {
            "orders": {
                "fields": [{"name": "region", "type": "STRING"},
                           {"name": "day", "type": "INT"},
                           {"name": "amount", "type": "DOUBLE"}],
                "partitionKeys": ["region", "day"],
                "partitionValues": {"region": ["us", "eu", "us"], "day": [3, 1, 2]},
            },
            "returns": {
                "fields": [{"name": "id", "type": "BIGINT NOT NULL"}],
            },
        }},
        "ops": {"tables": {}},
    }
}

ORDERS = TableName("sales", "orders")


class CatalogFacadeTest(unittest.TestCase):

    def setUp(self):
        self.catalog = MemoryCatalog.from_declaration(DECLARATION)
        self.facade = CatalogFacade(self.catalog)

    def test_list_schemas(self):
        self.assertEqual(self.facade.list_schemas(), ["sales", "ops"])

    def test_list_tables(self):
        self.assertEqual(self.facade.list_tables("sales"), [ORDERS, TableName("sales", "returns")])
        self.assertEqual(self.facade.list_tables("ops"), [])
        with self.assertRaises(SchemaNotExistException) as e:
            self.facade.list_tables("hr")
        self.assertEqual(e.exception.kind, "NotFound")

    def test_get_table(self):
        schema = self.facade.get_table(ORDERS)
        self.assertEqual(schema.field_names(), ["region", "day", "amount"])
        self.assertEqual(schema.to_pyarrow().field("day").type, pa.int32())
        with self.assertRaises(TableNotExistException) as e:
            self.facade.get_table(TableName("sales", "missing"))
        self.assertEqual(e.exception.kind, "NotFound")

    def test_get_table_layout(self):
        layout = self.facade.get_table_layout(ORDERS)
        self.assertEqual(layout.table_name, ORDERS)
        self.assertEqual(layout.partition_cols, ["region", "day"])
        # deduplicated, sorted, and always strings
        self.assertEqual(layout.partition_values, {"region": ["eu", "us"], "day": ["1", "2", "3"]})

        unpartitioned = self.facade.get_table_layout(TableName("sales", "returns"))
        self.assertEqual(unpartitioned.partition_cols, [])
        self.assertEqual(unpartitioned.partition_values, {})

    def test_layout_constraint_on_unknown_column(self):
        constraints = Constraints({"country": PredicateBuilder(["country"]).equal("country", "us")})
        with self.assertRaises(ColumnNotExistException):
            self.facade.get_table_layout(ORDERS, constraints)

    def test_transient_failure(self):
        catalog = Mock(wraps=self.catalog)
        catalog.list_schemas.side_effect = ConnectionError("metastore refused connection")
        with self.assertRaises(CatalogUnavailableException) as e:
            CatalogFacade(catalog).list_schemas()
        self.assertEqual(e.exception.kind, "CatalogUnavailable")
        self.assertIsInstance(e.exception.__cause__, ConnectionError)

    def test_timeout(self):
        release = threading.Event()
        catalog = Mock(wraps=self.catalog)
        catalog.describe_table.side_effect = lambda table_name: release.wait(5)
        facade = CatalogFacade(catalog, {"catalog.timeout": "100 ms"})
        try:
            with self.assertRaises(OperationTimeoutException) as e:
                facade.get_table(ORDERS)
            self.assertEqual(e.exception.kind, "Timeout")
        finally:
            release.set()

    def test_cache(self):
        catalog = Mock(wraps=self.catalog)
        facade = CatalogFacade(catalog, {"catalog.cache-enabled": "true"})
        first = facade.get_table(ORDERS)
        self.assertEqual(facade.get_table(ORDERS), first)
        facade.get_table_layout(ORDERS)
        facade.get_table_layout(ORDERS)
        self.assertEqual(catalog.describe_table.call_count, 1)
        self.assertEqual(catalog.describe_layout.call_count, 1)

        facade.invalidate()
        facade.get_table(ORDERS)
        self.assertEqual(catalog.describe_table.call_count, 2)

    def test_no_cache_by_default(self):
        catalog = Mock(wraps=self.catalog)
        facade = CatalogFacade(catalog)
        facade.get_table(ORDERS)
        facade.get_table(ORDERS)
        self.assertEqual(catalog.describe_table.call_count, 2)


class CatalogFactoryTest(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.tempdir = tempfile.mkdtemp()

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tempdir, ignore_errors=True)

    def test_memory_catalog(self):
        catalog = CatalogFactory.create({}, DECLARATION)
        self.assertEqual(catalog.list_schemas(), ["sales", "ops"])
        inline = CatalogFactory.create({"catalog.definition": json.dumps(DECLARATION)})
        self.assertEqual(inline.list_schemas(), ["sales", "ops"])

    def test_file_catalog(self):
        path = os.path.join(self.tempdir, "catalog.json")
        with open(path, "w") as f:
            json.dump(DECLARATION, f)
        catalog = CatalogFactory.create({"metastore": "file", "catalog.definition": f"file://{path}"})
        self.assertEqual(catalog.describe_table(ORDERS).field_names(), ["region", "day", "amount"])

    def test_unknown_metastore(self):
        with self.assertRaises(ValueError):
            CatalogFactory.create({"metastore": "hive"})

    def test_create_table(self):
        catalog = MemoryCatalog()
        schema = Schema.from_pyarrow(pa.schema([("region", pa.string())]))
        with self.assertRaises(SchemaNotExistException):
            catalog.create_table(ORDERS, schema)
        catalog.create_schema("sales")
        with self.assertRaises(ColumnNotExistException):
            catalog.create_table(ORDERS, schema, ["country"], {"country": ["us"]})
        catalog.create_table(ORDERS, schema, ["region"], {"region": ["us"]})
        self.assertEqual(catalog.describe_layout(ORDERS).partition_values, {"region": ["us"]})


if __name__ == '__main__':
    unittest.main()
