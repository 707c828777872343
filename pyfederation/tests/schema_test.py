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

import unittest

import pyarrow as pa
from parameterized import parameterized

from pyfederation.catalog.catalog_exception import ColumnNotExistException
from pyfederation.common.json_util import JSON
from pyfederation.common.table_name import TableName
from pyfederation.schema.data_types import (ArrayType, AtomicType, DataField,
                                            DataTypeParser,
                                            PyarrowFieldParser, RowType)
from pyfederation.schema.schema import Schema
from pyfederation.schema.table_layout import TableLayout


class DataTypesTest(unittest.TestCase):

    def test_atomic_type(self):
        self.assertEqual(str(AtomicType("BIGINT", nullable=False)), "BIGINT NOT NULL")
        self.assertEqual(str(AtomicType("STRING")), "STRING")
        self.assertEqual(str(DataTypeParser.parse_data_type("integer")), "INT")
        self.assertEqual(str(DataTypeParser.parse_data_type("VARCHAR NOT NULL")), "STRING NOT NULL")
        with self.assertRaises(ValueError):
            DataTypeParser.parse_data_type("DECIMAL(10, 2)")

    def test_nested_types(self):
        row = RowType(True, [DataField("a", AtomicType("INT")), DataField("b", ArrayType(True, AtomicType("STRING")))])
        self.assertEqual(str(row), "ROW<a: INT, b: ARRAY<STRING>>")
        parsed = DataTypeParser.parse_data_type(row.to_dict())
        self.assertEqual(str(parsed), str(row))
        with self.assertRaises(ValueError):
            RowType(True, [DataField("a", AtomicType("INT")), DataField("a", AtomicType("INT"))])

    @parameterized.expand([
        ("INT", pa.int32()),
        ("BIGINT", pa.int64()),
        ("FLOAT", pa.float32()),
        ("DOUBLE", pa.float64()),
        ("BOOLEAN", pa.bool_()),
        ("STRING", pa.string()),
        ("BYTES", pa.binary()),
        ("TIMESTAMP(6)", pa.timestamp('us')),
    ])
    def test_pyarrow_mapping(self, type_string, pa_type):
        data_type = DataTypeParser.parse_data_type(type_string)
        self.assertEqual(PyarrowFieldParser.from_federation_type(data_type), pa_type)
        self.assertEqual(str(PyarrowFieldParser.to_federation_type(pa_type, True)), type_string)

    def test_unsupported_pyarrow_type(self):
        with self.assertRaises(ValueError):
            PyarrowFieldParser.to_federation_type(pa.decimal128(10, 2), True)


class SchemaTest(unittest.TestCase):

    def setUp(self):
        self.pa_schema = pa.schema([
            pa.field('region', pa.string(), nullable=False),
            ('amount', pa.float64()),
            ('ts', pa.timestamp('ms')),
            ('tags', pa.list_(pa.string())),
        ], metadata={'owner': 'sales'})
        self.schema = Schema.from_pyarrow(self.pa_schema)

    def test_fields(self):
        self.assertEqual(self.schema.field_names(), ['region', 'amount', 'ts', 'tags'])
        self.assertEqual(str(self.schema.field('region').type), "STRING NOT NULL")
        self.assertEqual(self.schema.metadata, {'owner': 'sales'})
        self.assertTrue(self.schema.contains('ts'))
        with self.assertRaises(ColumnNotExistException):
            self.schema.field('missing')

    def test_duplicate_names(self):
        with self.assertRaises(ValueError):
            Schema(pa.schema([('a', pa.int32()), ('a', pa.string())]))

    def test_project_keeps_requested_order(self):
        projected = self.schema.project(['tags', 'region'])
        self.assertEqual(projected.field_names(), ['tags', 'region'])
        with self.assertRaises(ColumnNotExistException):
            self.schema.project(['region', 'nope'])

    def test_wire_form(self):
        restored = Schema.from_dict(self.schema.to_dict())
        self.assertEqual(restored, self.schema)
        self.assertTrue(restored.to_pyarrow().equals(self.pa_schema, check_metadata=True))
        with self.assertRaises(ValueError):
            Schema.from_dict({'schema': 'not base64 !'})
        with self.assertRaises(ValueError):
            Schema.from_dict({'fields': []})

    def test_from_fields(self):
        schema = Schema.from_fields([DataField('id', AtomicType('BIGINT', nullable=False), 'primary id'),
                                     DataField('name', AtomicType('STRING'))])
        self.assertEqual(schema.to_pyarrow().field('id').type, pa.int64())
        self.assertFalse(schema.to_pyarrow().field('id').nullable)
        self.assertEqual(schema.field('id').description, 'primary id')


class TableLayoutTest(unittest.TestCase):

    def setUp(self):
        self.schema = Schema.from_pyarrow(pa.schema([('region', pa.string()), ('amount', pa.float64())]))
        self.table_name = TableName('sales', 'orders')

    def test_partition_column_must_exist(self):
        with self.assertRaises(ColumnNotExistException):
            TableLayout(self.table_name, self.schema, ['country'], {'country': ['us']})

    def test_partition_column_needs_domain(self):
        with self.assertRaises(ValueError):
            TableLayout(self.table_name, self.schema, ['region'], {})
        with self.assertRaises(ValueError):
            TableLayout(self.table_name, self.schema, [], {'region': ['us']})

    def test_wire_form(self):
        layout = TableLayout(self.table_name, self.schema, ['region'], {'region': ['eu', 'us']})
        data = JSON.to_dict(layout)
        self.assertEqual(data['tableName'], {'schemaName': 'sales', 'tableName': 'orders'})
        self.assertEqual(data['partitionCols'], ['region'])
        self.assertEqual(JSON.from_dict(data, TableLayout), layout)


if __name__ == '__main__':
    unittest.main()
