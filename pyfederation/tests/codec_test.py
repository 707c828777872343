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
import unittest

import pyarrow as pa
from parameterized import parameterized

from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import (MalformedRequestException,
                                            UnsupportedOperationException,
                                            UnsupportedVersionException)
from pyfederation.common.identity import FederatedIdentity
from pyfederation.common.predicate_builder import PredicateBuilder
from pyfederation.common.table_name import TableName
from pyfederation.protocol.block import Block
from pyfederation.protocol.codec import (decode_request, decode_response,
                                         encode_request, encode_response)
from pyfederation.protocol.requests import (GetSplitsRequest,
                                            ListSchemasRequest,
                                            ListTablesRequest, PingRequest,
                                            ReadRecordsRequest)
from pyfederation.protocol.responses import (ErrorResponse,
                                             GetSplitsResponse,
                                             ListTablesResponse,
                                             ReadRecordsResponse)
from pyfederation.read.split import Split
from pyfederation.schema.schema import Schema
from pyfederation.schema.table_layout import TableLayout
from pyfederation.spill.encryption import BlockCrypto
from pyfederation.spill.spill_location import SpillLocation, SpillLocator


def _payload(**members) -> bytes:
    return json.dumps(members).encode('utf-8')


class CodecTest(unittest.TestCase):

    def setUp(self):
        self.schema = Schema.from_pyarrow(pa.schema([('region', pa.string()), ('amount', pa.float64())]))
        self.table_name = TableName('sales', 'orders')

    def test_decode_ping(self):
        request = decode_request(_payload(**{
            '@type': 'PingRequest',
            'protocolVersion': 1,
            'identity': {'id': 'i', 'principal': 'p', 'account': 'a'},
            'queryId': 'q-1',
            'catalogName': 'lake',
        }))
        self.assertEqual(request, PingRequest(FederatedIdentity('i', 'p', 'a'), 'q-1', 'lake'))

    def test_absent_version_and_unknown_members(self):
        request = decode_request(_payload(**{
            '@type': 'ListTablesRequest', 'schemaName': 'sales', 'futureMember': {'x': 1}}))
        self.assertIsInstance(request, ListTablesRequest)
        self.assertEqual(request.schema_name, 'sales')
        self.assertEqual(request.identity, FederatedIdentity())

    @parameterized.expand([
        ('not_utf8', b'\xff\xfe{}'),
        ('not_json', b'{"@type": "PingRequest"'),
        ('not_object', b'[1, 2]'),
        ('no_type', b'{"queryId": "q"}'),
        ('type_not_string', b'{"@type": 7}'),
        ('version_not_int', b'{"@type": "PingRequest", "protocolVersion": "1"}'),
        ('missing_required', b'{"@type": "ListTablesRequest"}'),
        ('wrong_member_type', b'{"@type": "ListTablesRequest", "schemaName": 5}'),
        ('bad_table_name', b'{"@type": "GetTableRequest", "tableName": "sales.orders"}'),
        ('null_table_name', b'{"@type": "GetTableRequest", "tableName": null}'),
        ('null_nested_member', b'{"@type": "GetTableRequest", "tableName": {"schemaName": null, "tableName": "t"}}'),
        ('null_schema_name', b'{"@type": "ListTablesRequest", "schemaName": null}'),
        ('bad_schema', b'{"@type": "ReadRecordsRequest", "tableName": {"schemaName": "a", "tableName": "b"},'
                       b' "schema": {"schema": "@@"}, "split": {"id": "s"}}'),
    ])
    def test_malformed(self, _, payload):
        with self.assertRaises(MalformedRequestException) as e:
            decode_request(payload)
        self.assertEqual(e.exception.kind, 'Malformed')

    def test_null_member_takes_default(self):
        request = decode_request(_payload(**{'@type': 'ListSchemasRequest', 'queryId': None, 'catalogName': 'lake'}))
        self.assertEqual(request.query_id, '')
        self.assertEqual(request.catalog_name, 'lake')

    def test_payload_must_be_bytes(self):
        with self.assertRaises(MalformedRequestException):
            decode_request('{"@type": "PingRequest"}')

    @parameterized.expand([(0,), (2,), (99,)])
    def test_unsupported_version(self, version):
        with self.assertRaises(UnsupportedVersionException) as e:
            decode_request(_payload(**{'@type': 'PingRequest', 'protocolVersion': version}))
        self.assertEqual(e.exception.kind, 'UnsupportedVersion')
        self.assertEqual(e.exception.version, version)

    def test_unsupported_operation(self):
        with self.assertRaises(UnsupportedOperationException) as e:
            decode_request(_payload(**{'@type': 'DropTableRequest'}))
        self.assertEqual(e.exception.operation, 'DropTableRequest')

    def test_request_round_trip(self):
        builder = PredicateBuilder(['region', 'amount'])
        constraints = Constraints({'region': builder.is_in('region', ['us', 'eu'])})
        layout = TableLayout(self.table_name, self.schema, ['region'], {'region': ['eu', 'us']})
        request = GetSplitsRequest(self.table_name, layout, constraints, 'token', 10, query_id='q')
        self.assertEqual(decode_request(encode_request(request)), request)

        split = Split.create(self.table_name, {'region': 'us'}, SpillLocation('bucket', 'spill/q/id'),
                             BlockCrypto.generate_key())
        read = ReadRecordsRequest(self.table_name, self.schema.project(['amount']), split, constraints)
        decoded = decode_request(encode_request(read))
        self.assertEqual(decoded.split, split)
        self.assertEqual(decoded.schema, read.schema)
        self.assertIsNone(decoded.max_block_size)
        self.assertIsNone(decoded.max_inline_block_size)
        self.assertNotIn('maxInlineBlockSize', json.loads(encode_request(read).decode('utf-8')))

        sized = ReadRecordsRequest(self.table_name, self.schema, split, max_block_size=1024, max_inline_block_size=64)
        decoded = decode_request(encode_request(sized))
        self.assertEqual((decoded.max_block_size, decoded.max_inline_block_size), (1024, 64))

    def test_envelope(self):
        data = json.loads(encode_request(ListSchemasRequest(catalog_name='lake')).decode('utf-8'))
        self.assertEqual(data['@type'], 'ListSchemasRequest')
        self.assertEqual(data['protocolVersion'], 1)
        self.assertEqual(data['catalogName'], 'lake')
        self.assertNotIn('continuationToken', json.loads(encode_request(
            GetSplitsRequest(self.table_name, TableLayout(self.table_name, self.schema))).decode('utf-8')))

    def test_encode_rejects_foreign_objects(self):
        with self.assertRaises(TypeError):
            encode_request(ErrorResponse('Internal', 'x'))
        with self.assertRaises(TypeError):
            encode_response(PingRequest())

    def test_response_round_trip(self):
        tables = ListTablesResponse([TableName('sales', 'orders'), TableName('sales', 'returns')], 'lake')
        self.assertEqual(decode_response(encode_response(tables)), tables)

        splits = GetSplitsResponse([Split.create(self.table_name, {'region': 'us'})], None)
        self.assertEqual(decode_response(encode_response(splits)), splits)

        error = ErrorResponse('NotFound', 'Table sales.missing does not exist')
        self.assertEqual(decode_response(encode_response(error)), error)

    def test_read_records_response(self):
        batch = pa.RecordBatch.from_pydict({'amount': [1.0, None, 3.0]})
        locator = SpillLocator('bucket', 'spill/q/id/0001', 0, 128, BlockCrypto.generate_key())
        response = ReadRecordsResponse([Block(batch), locator], ErrorResponse('TypeCoercionError', 'bad value'))

        data = json.loads(encode_response(response).decode('utf-8'))
        self.assertEqual([r['@type'] for r in data['records']], ['Block', 'SpillLocator'])
        self.assertEqual(set(data['records'][0]), {'@type', 'aId', 'schema', 'records'})
        self.assertEqual(Block.encoded_size(batch),
                         len(data['records'][0]['schema']) + len(data['records'][0]['records']))

        decoded = decode_response(encode_response(response))
        self.assertEqual(decoded.entries[0], response.entries[0])
        self.assertEqual(decoded.entries[1], locator)
        self.assertEqual(decoded.entries[0].to_table().column('amount').to_pylist(), [1.0, None, 3.0])
        self.assertEqual(decoded.error.kind, 'TypeCoercionError')

    def test_unknown_record_entry(self):
        payload = _payload(**{'@type': 'ReadRecordsResponse', 'records': [{'@type': 'Other'}]})
        with self.assertRaises(MalformedRequestException):
            decode_response(payload)


if __name__ == '__main__':
    unittest.main()
