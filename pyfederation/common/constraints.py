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

import hashlib
import json
from dataclasses import dataclass
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional

import pyarrow
from pyarrow import compute as pyarrow_compute

from pyfederation.catalog.catalog_exception import ColumnNotExistException
from pyfederation.common.json_util import json_field
from pyfederation.common.predicate import Predicate


@dataclass
class Constraints:
    """Per-column predicates, a row passes when every one of them accepts it."""

    summary: Dict[str, Predicate] = json_field("summary", default_factory=dict)

    @staticmethod
    def empty() -> "Constraints":
        return Constraints()

    def columns(self) -> List[str]:
        return list(self.summary.keys())

    def get(self, column: str) -> Optional[Predicate]:
        return self.summary.get(column)

    def is_empty(self) -> bool:
        return not self.summary

    def check_columns(self, field_names: Iterable[str]):
        known = set(field_names)
        for column in self.summary:
            if column not in known:
                raise ColumnNotExistException(column)

    def evaluate(self, row: Dict[str, Any]) -> bool:
        return all(predicate.test_by_value(row.get(column))
                   for column, predicate in self.summary.items())

    def mask(self, batch: pyarrow.RecordBatch) -> Optional[pyarrow.BooleanArray]:
        """Returns the row mask for batch, None when nothing is constrained."""
        if not self.summary:
            return None
        masks = [predicate.test_by_arrow(batch.column(batch.schema.get_field_index(column)))
                 for column, predicate in self.summary.items()]
        return reduce(pyarrow_compute.and_, masks)

    def fingerprint(self) -> str:
        canonical = json.dumps(self.to_dict(), sort_keys=True, default=str)
        return hashlib.sha256(canonical.encode('utf-8')).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": {column: predicate.to_dict() for column, predicate in self.summary.items()}}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Constraints":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Constraints must be a JSON object, got {type(data).__name__}")
        summary = data.get("summary") or {}
        if not isinstance(summary, dict):
            raise ValueError("Constraints summary must be a JSON object")
        return cls(summary={column: Predicate.from_dict(p).new_field(column) for column, p in summary.items()})
