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
from datetime import timedelta
from typing import Iterable, Iterator, Optional, Union

import pyarrow as pa

from pyfederation.common.bounded_call import bounded_call


class RecordBatchReader(ABC):
    """
    The reader that reads the pyarrow batches of records.
    """

    @abstractmethod
    def read_arrow_batch(self) -> Optional[pa.RecordBatch]:
        """
        Reads one batch. The method should return None when reaching the end of the input.
        """

    def close(self):
        """
        Closes the reader and should release all resources.
        """


class IterableRecordBatchReader(RecordBatchReader):
    """Reads the batches of a pyarrow Table or of any iterable of batches."""

    def __init__(self, batches: Union[pa.Table, Iterable[pa.RecordBatch]]):
        if isinstance(batches, pa.Table):
            batches = batches.to_batches()
        self._iterator: Iterator[pa.RecordBatch] = iter(batches)

    def read_arrow_batch(self) -> Optional[pa.RecordBatch]:
        return next(self._iterator, None)


class BoundedRecordBatchReader(RecordBatchReader):
    """Fails any single read of the wrapped reader that outlasts timeout."""

    def __init__(self, reader: RecordBatchReader, timeout: Optional[timedelta]):
        self.reader = reader
        self.timeout = timeout

    def read_arrow_batch(self) -> Optional[pa.RecordBatch]:
        return bounded_call("data source read", self.timeout, self.reader.read_arrow_batch)

    def close(self):
        self.reader.close()
