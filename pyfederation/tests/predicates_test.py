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
from pyfederation.common.constraints import Constraints
from pyfederation.common.predicate import Predicate
from pyfederation.common.predicate_builder import PredicateBuilder


class PredicateTest(unittest.TestCase):

    def setUp(self):
        self.builder = PredicateBuilder(['f0', 'f1'])
        self.ints = pa.array([1, 2, 3, 4, None], type=pa.int64())

    def test_wrong_field_name(self):
        with self.assertRaises(ValueError) as e:
            self.builder.equal('f2', 'a')
        self.assertEqual(str(e.exception), "The field f2 is not in field list ['f0', 'f1'].")

    @parameterized.expand([
        ('equal', lambda b: b.equal('f0', 3), [False, False, True, False, False]),
        ('not_equal', lambda b: b.not_equal('f0', 3), [True, True, False, True, False]),
        ('less_than', lambda b: b.less_than('f0', 3), [True, True, False, False, False]),
        ('less_or_equal', lambda b: b.less_or_equal('f0', 3), [True, True, True, False, False]),
        ('greater_than', lambda b: b.greater_than('f0', 3), [False, False, False, True, False]),
        ('greater_or_equal', lambda b: b.greater_or_equal('f0', 3), [False, False, True, True, False]),
        ('is_in', lambda b: b.is_in('f0', [1, 4]), [True, False, False, True, False]),
        ('is_not_in', lambda b: b.is_not_in('f0', [1, 4]), [False, True, True, False, False]),
        ('between', lambda b: b.between('f0', 2, 3), [False, True, True, False, False]),
        ('is_null', lambda b: b.is_null('f0'), [False, False, False, False, True]),
        ('is_not_null', lambda b: b.is_not_null('f0'), [True, True, True, True, False]),
    ])
    def test_by_arrow(self, _, build, expected):
        predicate = build(self.builder)
        self.assertEqual(predicate.test_by_arrow(self.ints).to_pylist(), expected)
        # row-wise evaluation agrees with the vectorized one
        self.assertEqual([predicate.test_by_value(v) for v in self.ints.to_pylist()], expected)

    def test_null_only_satisfies_is_null(self):
        for predicate in (self.builder.not_equal('f0', 1), self.builder.is_not_in('f0', [1]),
                          self.builder.less_than('f0', 100), self.builder.is_not_null('f0')):
            self.assertFalse(predicate.test_by_value(None), predicate.method)
        self.assertTrue(self.builder.is_null('f0').test_by_value(None))

    def test_and_or(self):
        gt = self.builder.greater_than('f0', 1)
        lt = self.builder.less_than('f0', 4)
        both = PredicateBuilder.and_predicates([gt, lt])
        either = PredicateBuilder.or_predicates([self.builder.equal('f0', 1), self.builder.is_null('f0')])
        self.assertEqual(both.test_by_arrow(self.ints).to_pylist(), [False, True, True, False, False])
        self.assertEqual(either.test_by_arrow(self.ints).to_pylist(), [True, False, False, False, True])
        self.assertIsNone(PredicateBuilder.and_predicates([]))
        self.assertIs(PredicateBuilder.and_predicates([gt]), gt)

    def test_string_literal_against_typed_column(self):
        timestamps = pa.array([0, 86_400_000], type=pa.timestamp('ms'))
        predicate = Predicate('greaterOrEqual', 'ts', ['1970-01-02 00:00:00'])
        self.assertEqual(predicate.test_by_arrow(timestamps).to_pylist(), [False, True])

    def test_incomparable_literal(self):
        with self.assertRaises(ValueError):
            Predicate('equal', 'f0', ['abc']).test_by_arrow(self.ints)

    @parameterized.expand([
        ({'method': 'like', 'literals': ['a']},),
        ({'method': 'equal'},),
        ({'method': 'between', 'literals': [1]},),
        ({'method': 'isNull', 'literals': [1]},),
        ({'method': 'and', 'literals': []},),
        ({'literals': [1]},),
        ('equal',),
    ])
    def test_invalid_predicate(self, data):
        with self.assertRaises(ValueError):
            Predicate.from_dict(data)

    def test_dict_form(self):
        predicate = PredicateBuilder.or_predicates([self.builder.equal('f1', 'a'), self.builder.is_null('f1')])
        restored = Predicate.from_dict(predicate.to_dict())
        self.assertEqual(restored, predicate)
        self.assertEqual(predicate.to_dict()['method'], 'or')


class ConstraintsTest(unittest.TestCase):

    def setUp(self):
        builder = PredicateBuilder(['region', 'amount'])
        self.constraints = Constraints({
            'region': builder.equal('region', 'us'),
            'amount': builder.greater_than('amount', 10.0),
        })
        self.batch = pa.RecordBatch.from_pydict({
            'region': ['us', 'us', 'eu', None],
            'amount': [5.0, 20.0, 30.0, 40.0],
        })

    def test_mask(self):
        self.assertEqual(self.constraints.mask(self.batch).to_pylist(), [False, True, False, False])
        self.assertIsNone(Constraints.empty().mask(self.batch))

    def test_evaluate(self):
        self.assertTrue(self.constraints.evaluate({'region': 'us', 'amount': 11.0}))
        self.assertFalse(self.constraints.evaluate({'region': 'us', 'amount': None}))
        self.assertFalse(self.constraints.evaluate({'amount': 11.0}))
        self.assertTrue(Constraints.empty().evaluate({}))

    def test_check_columns(self):
        self.constraints.check_columns(['region', 'amount', 'other'])
        with self.assertRaises(ColumnNotExistException) as e:
            self.constraints.check_columns(['region'])
        self.assertEqual(e.exception.kind, 'NotFound')

    def test_from_dict(self):
        data = {'summary': {'region': {'method': 'in', 'literals': ['us', 'eu']}}}
        constraints = Constraints.from_dict(data)
        self.assertEqual(constraints.columns(), ['region'])
        # the summary key names the column
        self.assertEqual(constraints.get('region').field, 'region')
        self.assertTrue(Constraints.from_dict(None).is_empty())
        self.assertTrue(Constraints.from_dict({}).is_empty())
        with self.assertRaises(ValueError):
            Constraints.from_dict({'summary': ['region']})

    def test_fingerprint(self):
        same = Constraints.from_dict(self.constraints.to_dict())
        self.assertEqual(same.fingerprint(), self.constraints.fingerprint())
        self.assertNotEqual(Constraints.empty().fingerprint(), self.constraints.fingerprint())


if __name__ == '__main__':
    unittest.main()
