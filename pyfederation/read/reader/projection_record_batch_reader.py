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

from pyfederation.read.reader.record_batch_reader import RecordBatchReader


class ProjectionRecordBatchReader(RecordBatchReader):
    """Keeps the fields of schema, in its order."""

    def __init__(self, reader: RecordBatchReader, schema: pa.Schema):
        self.reader = reader
        self.schema = schema

    def read_arrow_batch(self) -> Optional[pa.RecordBatch]:
        batch = self.reader.read_arrow_batch()
        if batch is None:
            return None
        return pa.RecordBatch.from_arrays(
            [batch.column(batch.schema.get_field_index(name)) for name in self.schema.names], schema=self.schema)

    def close(self):
        self.reader.close()
