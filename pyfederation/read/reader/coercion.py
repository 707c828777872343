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

from typing import Optional

import pyarrow as pa
import pyarrow.compute as pc

from pyfederation.common.exceptions import TypeCoercionException
from pyfederation.read.reader.record_batch_reader import RecordBatchReader


def coerce_array(name: str, array: pa.Array, field: pa.Field) -> pa.Array:
    """
    Converts array to the field's type without losing value identity, a
    string that is not a number never becomes one.
    """
    if isinstance(array, pa.ChunkedArray):
        array = array.combine_chunks()
    if not array.type.equals(field.type):
        try:
            array = pc.cast(array, field.type, safe=True)
        except (pa.ArrowInvalid, pa.ArrowNotImplementedError, pa.ArrowTypeError) as e:
            raise TypeCoercionException(name, field.type, str(e), e)
    if not field.nullable and array.null_count > 0:
        raise TypeCoercionException(name, field.type, "null in a non-nullable column")
    return array


class CoercingRecordBatchReader(RecordBatchReader):
    """
    Emits batches with exactly the fields of target_schema, each cast to its
    declared type. Columns the source does not deliver are all null, which
    only nullable fields accept.
    """

    def __init__(self, reader: RecordBatchReader, target_schema: pa.Schema):
        self.reader = reader
        self.target_schema = target_schema

    def read_arrow_batch(self) -> Optional[pa.RecordBatch]:
        batch = self.reader.read_arrow_batch()
        if batch is None:
            return None
        arrays = []
        for field in self.target_schema:
            index = batch.schema.get_field_index(field.name)
            if index < 0:
                if not field.nullable:
                    raise TypeCoercionException(field.name, field.type, "missing from the source")
                arrays.append(pa.nulls(batch.num_rows, type=field.type))
                continue
            arrays.append(coerce_array(field.name, batch.column(index), field))
        return pa.RecordBatch.from_arrays(arrays, schema=self.target_schema)

    def close(self):
        self.reader.close()
