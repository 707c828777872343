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

import os
import shutil
import tempfile
import threading
import unittest

import pandas as pd
import pyarrow as pa

from pyfederation.catalog.catalog_exception import ColumnNotExistException
from pyfederation.client import FederationClient
from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import (OperationTimeoutException,
                                            SpillFailureException,
                                            TypeCoercionException)
from pyfederation.common.predicate_builder import PredicateBuilder
from pyfederation.common.table_name import TableName
from pyfederation.protocol.block import Block
from pyfederation.protocol.responses import ReadRecordsResponse
from pyfederation.read.batch_executor import BatchExecutor
from pyfederation.read.reader.data_source import DataSource, RowDataSource
from pyfederation.read.reader.record_batch_reader import (
    IterableRecordBatchReader, RecordBatchReader)
from pyfederation.read.split import Split
from pyfederation.read.split_planner import SplitPlanner
from pyfederation.schema.schema import Schema
from pyfederation.schema.table_layout import TableLayout
from pyfederation.spill.spill_location import SpillLocator
from pyfederation.spill.spill_store import FileIOSpillStore, serialize_batch

TABLE = TableName('sales', 'orders')


class DictRowSource(RowDataSource):
    """Serves a fixed list of rows per region."""

    def __init__(self, rows_by_region, rows_per_batch=8192):
        super().__init__(rows_per_batch)
        self.rows_by_region = rows_by_region

    def read_rows(self, properties):
        return iter(self.rows_by_region.get(properties.get('region'), []))


class ArrowSource(DataSource):

    def __init__(self, batches):
        self.batches = batches
        self.opened = []

    def open_range(self, properties, schema):
        self.opened.append(properties)
        return IterableRecordBatchReader(self.batches)


class StalledReader(RecordBatchReader):

    def __init__(self, release):
        self.release = release

    def read_arrow_batch(self):
        self.release.wait(5)
        return None


class StalledSource(DataSource):

    def __init__(self):
        self.release = threading.Event()

    def open_range(self, properties, schema):
        return StalledReader(self.release)


class BatchExecutorTest(unittest.TestCase):

    def setUp(self):
        self.table_schema = Schema.from_pyarrow(pa.schema([
            ('id', pa.int64()),
            ('region', pa.string()),
            ('amount', pa.float64()),
            ('note', pa.string()),
        ]))
        self.rows = [
            {'id': 1, 'region': 'us', 'amount': 5.0, 'note': 'a'},
            {'id': 2, 'region': 'us', 'amount': 50.0, 'note': 'b'},
            {'id': 3, 'region': 'us', 'amount': None, 'note': 'c'},
        ]
        self.split = Split.create(TABLE, {'region': 'us'})
        self.builder = PredicateBuilder(self.table_schema.field_names())

    def _execute(self, source, requested, constraints=None, options=None, spill_store=None, split=None):
        executor = BatchExecutor(source, spill_store, options)
        return executor.execute(split or self.split, self.table_schema.project(requested), constraints,
                                self.table_schema)

    def test_projection(self):
        result = self._execute(DictRowSource({'us': self.rows}), ['note', 'id'])
        self.assertIsNone(result.error)
        self.assertEqual(len(result.entries), 1)
        block = result.entries[0]
        self.assertIsInstance(block, Block)
        self.assertEqual(block.records.schema.names, ['note', 'id'])
        self.assertEqual(block.records.to_pydict(), {'note': ['a', 'b', 'c'], 'id': [1, 2, 3]})

    def test_constraints_on_unrequested_column(self):
        constraints = Constraints({'amount': self.builder.greater_than('amount', 10.0)})
        result = self._execute(DictRowSource({'us': self.rows}), ['id'], constraints)
        table = FederationClient.to_table(ReadRecordsResponse(result.entries), self.table_schema.project(['id']))
        # the null amount is rejected along with 5.0
        self.assertEqual(table.column('id').to_pylist(), [2])
        self.assertEqual(table.schema.names, ['id'])

    def test_empty_range(self):
        result = self._execute(DictRowSource({}), ['id', 'amount'])
        self.assertIsNone(result.error)
        self.assertEqual(len(result.entries), 1)
        self.assertEqual(result.entries[0].num_rows, 0)
        self.assertEqual(result.entries[0].records.schema.names, ['id', 'amount'])

    def test_all_rows_filtered(self):
        constraints = Constraints({'note': self.builder.equal('note', 'zzz')})
        result = self._execute(DictRowSource({'us': self.rows}), ['id'], constraints)
        self.assertEqual([e.num_rows for e in result.entries], [0])

    def test_values_coerced_to_declared_types(self):
        rows = [{'id': '7', 'region': 'us', 'amount': 3}, {'id': '8', 'region': 'us', 'amount': 4}]
        result = self._execute(DictRowSource({'us': rows}), ['id', 'amount', 'note'])
        records = result.entries[0].records
        self.assertEqual(records.schema.field('id').type, pa.int64())
        self.assertEqual(records.to_pydict(), {'id': [7, 8], 'amount': [3.0, 4.0], 'note': [None, None]})

    def test_coercion_failure_keeps_earlier_batches(self):
        rows = [{'id': 1}, {'id': 2}, {'id': 'three'}, {'id': 'four'}]
        result = self._execute(DictRowSource({'us': rows}, rows_per_batch=2), ['id'],
                               options={'read.max-batch-rows': 2})
        self.assertEqual(len(result.entries), 1)
        self.assertEqual(result.entries[0].records.column(0).to_pylist(), [1, 2])
        self.assertIsInstance(result.error, TypeCoercionException)
        self.assertEqual(result.error.kind, 'TypeCoercionError')
        self.assertEqual(result.error.column, 'id')

    def test_coercion_failure_on_first_batch(self):
        result = self._execute(DictRowSource({'us': [{'id': 'one'}]}), ['id'])
        self.assertEqual(result.entries, [])
        self.assertIsInstance(result.error, TypeCoercionException)

    def test_null_in_required_column(self):
        schema = Schema.from_pyarrow(pa.schema([pa.field('id', pa.int64(), nullable=False)]))
        executor = BatchExecutor(DictRowSource({'us': [{'id': 1}, {'id': None}]}))
        result = executor.execute(self.split, schema, None, schema)
        self.assertEqual(result.entries, [])
        self.assertIsInstance(result.error, TypeCoercionException)

    def test_batches_respect_max_rows(self):
        rows = [{'id': i} for i in range(10)]
        result = self._execute(DictRowSource({'us': rows}, rows_per_batch=4), ['id'],
                               options={'read.max-batch-rows': 3})
        self.assertEqual([e.num_rows for e in result.entries], [3, 3, 3, 1])
        ids = [v for e in result.entries for v in e.records.column(0).to_pylist()]
        self.assertEqual(ids, list(range(10)))

    def test_unknown_requested_column(self):
        requested = Schema.from_pyarrow(pa.schema([('missing', pa.int64())]))
        with self.assertRaises(ColumnNotExistException):
            BatchExecutor(DictRowSource({})).execute(self.split, requested, None, self.table_schema)

    def test_oversized_batch_without_spill_store(self):
        with self.assertRaises(SpillFailureException):
            self._execute(DictRowSource({'us': self.rows}), ['id', 'note'],
                          options={'read.max-inline-block-size': '16 b'})

    def test_read_timeout(self):
        source = StalledSource()
        try:
            with self.assertRaises(OperationTimeoutException):
                self._execute(source, ['id'], options={'read.timeout': '100 ms'})
        finally:
            source.release.set()


class SpillTest(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.tempdir = tempfile.mkdtemp()

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(cls.tempdir, ignore_errors=True)

    def setUp(self):
        self.table_schema = Schema.from_pyarrow(pa.schema([('region', pa.string()), ('id', pa.int64())]))
        self.layout = TableLayout(TABLE, self.table_schema, ['region'], {'region': ['us']})

    def _options(self, **extra):
        options = {
            'spill.bucket': self.tempdir,
            'spill.scheme': 'file',
            'spill.prefix': 'spill',
        }
        options.update(extra)
        return options

    def _plan(self, options, query_id):
        splits, _ = SplitPlanner(options).plan(self.layout, query_id=query_id)
        return splits[0]

    def test_large_batches_are_spilled(self):
        options = self._options(**{'read.max-inline-block-size': '1 kb', 'read.max-batch-rows': 1000,
                                   'spill.encryption-secret': 's3cret'})
        split = self._plan(options, 'query-1')
        rows = [{'region': 'us', 'id': i} for i in range(2500)]
        store = FileIOSpillStore(options)
        result = BatchExecutor(DictRowSource({'us': rows}), store, options).execute(
            split, self.table_schema.project(['id']), None, self.table_schema)

        self.assertEqual(len(result.entries), 3)
        for entry in result.entries:
            self.assertIsInstance(entry, SpillLocator)
            self.assertTrue(entry.key.startswith('spill/query-1/{}/'.format(split.id)))
            self.assertTrue(entry.is_encrypted())
            self.assertEqual(entry.encryption_key.key, split.encryption_key.key)
            self.assertTrue(os.path.exists(os.path.join(self.tempdir, entry.key)))
        # one nonce per object
        self.assertEqual(len({e.encryption_key.nonce for e in result.entries}), 3)

        table = FederationClient.to_table(ReadRecordsResponse(result.entries), self.table_schema.project(['id']),
                                          store)
        self.assertEqual(table.column('id').to_pylist(), list(range(2500)))

    def test_small_batches_stay_inline(self):
        options = self._options()
        split = self._plan(options, 'query-2')
        rows = [{'region': 'us', 'id': i} for i in range(10)]
        result = BatchExecutor(DictRowSource({'us': rows}), FileIOSpillStore(options), options).execute(
            split, self.table_schema, None, self.table_schema)
        self.assertEqual(len(result.entries), 1)
        self.assertIsInstance(result.entries[0], Block)

    def test_million_rows_in_order(self):
        options = self._options(**{
            'read.max-batch-rows': 200000,
            'read.max-inline-block-size': '64 kb',
            'read.worker-threads': 4,
        })
        split = self._plan(options, 'query-3')
        batches = [pa.RecordBatch.from_arrays([pa.array(['us'] * 100000), pa.array(range(start, start + 100000),
                                                                                   type=pa.int64())],
                                              names=['region', 'id'])
                   for start in range(0, 1000000, 100000)]
        store = FileIOSpillStore(options)
        requested = self.table_schema.project(['id'])
        result = BatchExecutor(ArrowSource(batches), store, options).execute(
            split, requested, None, self.table_schema)

        self.assertIsNone(result.error)
        self.assertEqual(len(result.entries), 5)
        self.assertTrue(all(isinstance(e, SpillLocator) for e in result.entries))
        table = FederationClient.to_table(ReadRecordsResponse(result.entries), requested, store)
        self.assertEqual(table.num_rows, 1000000)
        expected = pd.DataFrame({'id': range(1000000)})
        pd.testing.assert_frame_equal(table.to_pandas(), expected, check_dtype=False)

    def test_inline_limit_applies_to_encoded_block(self):
        batch = pa.RecordBatch.from_pydict({'region': ['us'] * 64, 'id': list(range(64))},
                                           schema=self.table_schema.to_pyarrow())
        raw_size = len(serialize_batch(batch))
        self.assertGreater(Block.encoded_size(batch), raw_size)

        # raw IPC bytes would fit, the base64 block sent inline does not
        options = self._options(**{'read.max-inline-block-size': str(raw_size)})
        split = self._plan(options, 'query-5')
        result = BatchExecutor(ArrowSource([batch]), FileIOSpillStore(options), options).execute(
            split, self.table_schema, None, self.table_schema)
        self.assertIsInstance(result.entries[0], SpillLocator)

        options = self._options(**{'read.max-inline-block-size': str(2 * raw_size)})
        result = BatchExecutor(ArrowSource([batch]), FileIOSpillStore(options), options).execute(
            split, self.table_schema, None, self.table_schema)
        self.assertIsInstance(result.entries[0], Block)

    def test_unencrypted_spill(self):
        options = self._options(**{'read.max-inline-block-size': '16 b', 'spill.encryption-enabled': 'false'})
        split = self._plan(options, 'query-4')
        self.assertIsNone(split.encryption_key)
        result = BatchExecutor(DictRowSource({'us': [{'region': 'us', 'id': 1}]}), FileIOSpillStore(options),
                               options).execute(split, self.table_schema, None, self.table_schema)
        self.assertFalse(result.entries[0].is_encrypted())


if __name__ == '__main__':
    unittest.main()
