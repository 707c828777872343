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

from abc import ABC, ABCMeta, abstractmethod
from dataclasses import dataclass
from functools import reduce
from typing import Any, ClassVar, Dict, List, Optional

import pyarrow
from pyarrow import compute as pyarrow_compute


@dataclass
class Predicate:
    """
    A pushdown predicate over one column. Nulls only ever satisfy isNull,
    every other method rejects them, notEqual and notIn included.
    """

    method: str
    field: Optional[str]
    literals: Optional[List[Any]] = None

    testers: ClassVar[Dict[str, Any]] = {}

    def new_field(self, field: str):
        return Predicate(
            method=self.method,
            field=field,
            literals=self.literals)

    def validate(self):
        if self.method in ('and', 'or'):
            if not self.literals:
                raise ValueError(f"Predicate '{self.method}' needs at least one child predicate")
            for child in self.literals:
                if not isinstance(child, Predicate):
                    raise ValueError(f"Predicate '{self.method}' children must be predicates")
                child.validate()
            return
        tester = Predicate.testers.get(self.method)
        if tester is None:
            raise ValueError(f"Unsupported predicate method: {self.method}")
        literal_count = len(self.literals or [])
        if tester.arity is not None and literal_count != tester.arity:
            raise ValueError(
                f"Predicate '{self.method}' expects {tester.arity} literal(s), got {literal_count}")

    def test_by_value(self, value: Any) -> bool:
        if self.method == 'and':
            return all(p.test_by_value(value) for p in self.literals)
        if self.method == 'or':
            return any(p.test_by_value(value) for p in self.literals)

        tester = Predicate.testers.get(self.method)
        if tester is None:
            raise ValueError(f"Unsupported predicate method: {self.method}")
        if value is None:
            return tester.accepts_null
        return tester.test_by_value(value, self.literals or [])

    def test_by_arrow(self, array: pyarrow.Array) -> pyarrow.BooleanArray:
        """
        Evaluates the predicate over a whole column, returning a mask without
        nulls: true where the row is accepted.
        """
        if isinstance(array, pyarrow.ChunkedArray):
            array = array.combine_chunks()
        if self.method == 'and':
            return reduce(pyarrow_compute.and_, [p.test_by_arrow(array) for p in self.literals])
        if self.method == 'or':
            return reduce(pyarrow_compute.or_, [p.test_by_arrow(array) for p in self.literals])

        tester = Predicate.testers.get(self.method)
        if tester is None:
            raise ValueError(f"Unsupported predicate method: {self.method}")
        literals = [_to_scalar(literal, array.type) for literal in self.literals or []]
        mask = tester.test_by_arrow(array, literals)
        return pyarrow_compute.fill_null(mask, False)

    def to_dict(self) -> Dict[str, Any]:
        result = {"method": self.method}
        if self.field is not None:
            result["field"] = self.field
        if self.literals is not None:
            if self.method in ('and', 'or'):
                result["literals"] = [p.to_dict() for p in self.literals]
            else:
                result["literals"] = list(self.literals)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Predicate":
        if not isinstance(data, dict) or not isinstance(data.get("method"), str):
            raise ValueError(f"Invalid predicate: {data}")
        method = data["method"]
        literals = data.get("literals")
        if literals is not None and not isinstance(literals, list):
            raise ValueError(f"Predicate literals must be a list: {data}")
        if method in ('and', 'or') and literals is not None:
            literals = [cls.from_dict(child) for child in literals]
        predicate = cls(method=method, field=data.get("field"), literals=literals)
        predicate.validate()
        return predicate


def _to_scalar(literal: Any, arrow_type: pyarrow.DataType) -> pyarrow.Scalar:
    if isinstance(literal, pyarrow.Scalar):
        return literal.cast(arrow_type)
    try:
        return pyarrow.scalar(literal, type=arrow_type)
    except (pyarrow.ArrowException, TypeError, ValueError):
        # e.g. "2024-01-01" against a timestamp column
        try:
            return pyarrow.array([literal]).cast(arrow_type)[0]
        except (pyarrow.ArrowException, TypeError, ValueError) as e:
            raise ValueError(f"Literal {literal!r} is not comparable with {arrow_type}") from e


class RegisterMeta(ABCMeta):
    def __init__(cls, name, bases, dct):
        super().__init__(name, bases, dct)
        if not bool(cls.__abstractmethods__):
            Predicate.testers[cls.name] = cls()


class Tester(ABC, metaclass=RegisterMeta):

    name = None
    arity = 1
    accepts_null = False

    @abstractmethod
    def test_by_value(self, val, literals) -> bool:
        """
        Test based on the specific non-null val and literals.
        """

    @abstractmethod
    def test_by_arrow(self, val, literals):
        """
        Test based on the specific arrow array and literals, nulls in the
        result count as rejected.
        """


class Equal(Tester):

    name = 'equal'

    def test_by_value(self, val, literals) -> bool:
        return val == literals[0]

    def test_by_arrow(self, val, literals):
        return pyarrow_compute.equal(val, literals[0])


class NotEqual(Tester):

    name = "notEqual"

    def test_by_value(self, val, literals) -> bool:
        return val != literals[0]

    def test_by_arrow(self, val, literals):
        return pyarrow_compute.not_equal(val, literals[0])


class LessThan(Tester):

    name = "lessThan"

    def test_by_value(self, val, literals) -> bool:
        return val < literals[0]

    def test_by_arrow(self, val, literals):
        return pyarrow_compute.less(val, literals[0])


class LessOrEqual(Tester):

    name = "lessOrEqual"

    def test_by_value(self, val, literals) -> bool:
        return val <= literals[0]

    def test_by_arrow(self, val, literals):
        return pyarrow_compute.less_equal(val, literals[0])


class GreaterThan(Tester):

    name = "greaterThan"

    def test_by_value(self, val, literals) -> bool:
        return val > literals[0]

    def test_by_arrow(self, val, literals):
        return pyarrow_compute.greater(val, literals[0])


class GreaterOrEqual(Tester):

    name = "greaterOrEqual"

    def test_by_value(self, val, literals) -> bool:
        return val >= literals[0]

    def test_by_arrow(self, val, literals):
        return pyarrow_compute.greater_equal(val, literals[0])


class In(Tester):

    name = "in"
    arity = None

    def test_by_value(self, val, literals) -> bool:
        return val in literals

    def test_by_arrow(self, val, literals):
        value_set = pyarrow.array([lit.as_py() for lit in literals], type=val.type)
        return pyarrow_compute.and_(
            pyarrow_compute.is_in(val, value_set=value_set, skip_nulls=True), val.is_valid())


class NotIn(Tester):

    name = "notIn"
    arity = None

    def test_by_value(self, val, literals) -> bool:
        return val not in literals

    def test_by_arrow(self, val, literals):
        value_set = pyarrow.array([lit.as_py() for lit in literals], type=val.type)
        return pyarrow_compute.and_(
            pyarrow_compute.invert(pyarrow_compute.is_in(val, value_set=value_set, skip_nulls=True)),
            val.is_valid())


class Between(Tester):

    name = "between"
    arity = 2

    def test_by_value(self, val, literals) -> bool:
        return literals[0] <= val <= literals[1]

    def test_by_arrow(self, val, literals):
        return pyarrow_compute.and_(
            pyarrow_compute.greater_equal(val, literals[0]),
            pyarrow_compute.less_equal(val, literals[1]))


class IsNull(Tester):

    name = "isNull"
    arity = 0
    accepts_null = True

    def test_by_value(self, val, literals) -> bool:
        return False

    def test_by_arrow(self, val, literals):
        return val.is_null()


class IsNotNull(Tester):

    name = "isNotNull"
    arity = 0

    def test_by_value(self, val, literals) -> bool:
        return True

    def test_by_arrow(self, val, literals):
        return val.is_valid()
