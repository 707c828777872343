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

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Optional

import pyarrow as pa

from pyfederation.common.exceptions import TypeCoercionException
from pyfederation.read.reader.record_batch_reader import RecordBatchReader
from pyfederation.schema.schema import Schema

DEFAULT_ROWS_PER_BATCH = 8192


class DataSource(ABC):
    """Opens the physical range a split addresses."""

    @abstractmethod
    def open_range(self, properties: Dict[str, str], schema: Schema) -> RecordBatchReader:
        """
        Opens a forward-only reader over the range named by the split
        properties. schema is the declared table schema, columns may arrive
        in other types and are coerced afterwards.
        """


class RowDataSource(DataSource):
    """A DataSource producing plain dict rows."""

    def __init__(self, rows_per_batch: int = DEFAULT_ROWS_PER_BATCH):
        self.rows_per_batch = rows_per_batch

    @abstractmethod
    def read_rows(self, properties: Dict[str, str]) -> Iterable[Dict[str, Any]]:
        pass

    def open_range(self, properties: Dict[str, str], schema: Schema) -> RecordBatchReader:
        return RowIteratorReader(self.read_rows(properties), schema.to_pyarrow(), self.rows_per_batch)


class RowIteratorReader(RecordBatchReader):
    """
    Packs dict rows into record batches. Columns are built in their declared
    type where the values allow it, otherwise in the type pyarrow infers, so
    the coercion step decides whether the values convert.
    """

    def __init__(self, rows: Iterable[Dict[str, Any]], schema: pa.Schema,
                 rows_per_batch: int = DEFAULT_ROWS_PER_BATCH):
        self._rows: Iterator[Dict[str, Any]] = iter(rows)
        self.schema = schema
        self.rows_per_batch = rows_per_batch

    def read_arrow_batch(self) -> Optional[pa.RecordBatch]:
        chunk: List[Dict[str, Any]] = []
        for row in self._rows:
            chunk.append(row)
            if len(chunk) >= self.rows_per_batch:
                break
        if not chunk:
            return None
        arrays = []
        names = []
        for field in self.schema:
            values = [row.get(field.name) for row in chunk]
            arrays.append(self._to_array(field, values))
            names.append(field.name)
        return pa.RecordBatch.from_arrays(arrays, names=names)

    @staticmethod
    def _to_array(field: pa.Field, values: List[Any]) -> pa.Array:
        try:
            return pa.array(values, type=field.type)
        except (pa.ArrowInvalid, pa.ArrowTypeError, TypeError, ValueError, OverflowError):
            pass
        try:
            return pa.array(values)
        except (pa.ArrowInvalid, pa.ArrowTypeError, TypeError, ValueError, OverflowError) as e:
            raise TypeCoercionException(field.name, field.type, "values of mixed types", e)
