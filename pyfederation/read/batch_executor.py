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

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Union

import pyarrow as pa

from pyfederation.common.bounded_call import bounded_call
from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import (FederationException,
                                            MalformedRequestException,
                                            SpillFailureException,
                                            TypeCoercionException)
from pyfederation.common.options import Options
from pyfederation.common.options.config import ReadOptions, SpillOptions
from pyfederation.protocol.block import Block
from pyfederation.protocol.responses import ReadEntry
from pyfederation.read.reader.coercion import CoercingRecordBatchReader
from pyfederation.read.reader.data_source import DataSource
from pyfederation.read.reader.filter_record_batch_reader import \
    FilterRecordBatchReader
from pyfederation.read.reader.projection_record_batch_reader import \
    ProjectionRecordBatchReader
from pyfederation.read.reader.record_batch_reader import (
    BoundedRecordBatchReader, RecordBatchReader)
from pyfederation.read.split import Split
from pyfederation.schema.schema import Schema
from pyfederation.spill.encryption import BlockCrypto
from pyfederation.spill.spill_store import SpillStore, serialize_batch

logger = logging.getLogger(__name__)


@dataclass
class ReadResult:
    """Entries in scan order, and the error that stopped the scan early, if any."""

    entries: List[ReadEntry] = field(default_factory=list)
    error: Optional[FederationException] = None


class BatchAccumulator:
    """
    Regroups the batches of a reader into batches of at most max_rows rows,
    closing a batch early once it holds max_bytes bytes.
    """

    def __init__(self, reader: RecordBatchReader, schema: pa.Schema, max_rows: int, max_bytes: int):
        if max_rows < 1:
            raise ValueError(f"max_rows must be at least 1, got {max_rows}")
        self.reader = reader
        self.schema = schema
        self.max_rows = max_rows
        self.max_bytes = max_bytes
        self._pending: List[pa.RecordBatch] = []
        self._pending_rows = 0
        self._pending_bytes = 0
        self._exhausted = False

    def next_batch(self) -> Optional[pa.RecordBatch]:
        while not self._exhausted and self._pending_rows < self.max_rows and self._pending_bytes < self.max_bytes:
            batch = self.reader.read_arrow_batch()
            if batch is None:
                self._exhausted = True
                break
            if batch.num_rows == 0:
                continue
            self._pending.append(batch)
            self._pending_rows += batch.num_rows
            self._pending_bytes += batch.nbytes

        if not self._pending:
            return None
        table = pa.Table.from_batches(self._pending, schema=self.schema)
        head = table.slice(0, self.max_rows)
        tail = table.slice(self.max_rows)
        self._pending = [b for b in tail.to_batches() if b.num_rows > 0]
        self._pending_rows = tail.num_rows
        self._pending_bytes = sum(b.nbytes for b in self._pending)
        return _single_batch(head)


def _single_batch(table: pa.Table) -> pa.RecordBatch:
    batches = table.combine_chunks().to_batches()
    if len(batches) == 1:
        return batches[0]
    return pa.RecordBatch.from_arrays([table.column(name).combine_chunks() for name in table.schema.names],
                                      schema=table.schema)


class BatchExecutor:
    """
    Executes one split: open the range, coerce to the declared types, drop
    rows the constraints reject, project the requested fields, regroup into
    bounded batches, and return each batch inline or spilled.

    Reading runs on the calling thread while a bounded pool serializes and
    spills closed batches, entries keep scan order.
    """

    def __init__(self, data_source: DataSource, spill_store: Optional[SpillStore] = None,
                 options: Union[Options, dict, None] = None):
        self.data_source = data_source
        self.spill_store = spill_store
        self.options = options if isinstance(options, Options) else Options(options)
        self.max_batch_rows = self.options.get(ReadOptions.MAX_BATCH_ROWS)
        self.max_block_size = self.options.get(ReadOptions.MAX_BLOCK_SIZE).get_bytes()
        self.max_inline_block_size = self.options.get(ReadOptions.MAX_INLINE_BLOCK_SIZE).get_bytes()
        self.worker_threads = max(1, self.options.get(ReadOptions.WORKER_THREADS))
        self.read_timeout = self.options.get(ReadOptions.TIMEOUT)
        self.encryption_enabled = self.options.get(SpillOptions.ENCRYPTION_ENABLED)

    def execute(self, split: Split, requested_schema: Schema, constraints: Optional[Constraints],
                table_schema: Schema, max_block_size: Optional[int] = None,
                max_inline_block_size: Optional[int] = None) -> ReadResult:
        constraints = constraints or Constraints.empty()
        table_pa = table_schema.to_pyarrow()
        for name in requested_schema.field_names():
            table_schema.field(name)
        constraints.check_columns(table_schema.field_names())

        requested_pa = requested_schema.to_pyarrow()
        # requested fields in their requested types, plus columns only the constraints need
        target_fields = list(requested_pa)
        target_fields += [table_pa.field(c) for c in constraints.columns() if c not in requested_pa.names]
        target_schema = pa.schema(target_fields)

        block_size = self._limit("maxBlockSize", max_block_size, self.max_block_size)
        inline_size = self._limit("maxInlineBlockSize", max_inline_block_size, self.max_inline_block_size)
        encryption_key = split.encryption_key
        if encryption_key is None and self.encryption_enabled:
            encryption_key = BlockCrypto.generate_key()

        source = bounded_call("open range", self.read_timeout, self.data_source.open_range,
                              dict(split.properties), table_schema)
        reader: RecordBatchReader = BoundedRecordBatchReader(source, self.read_timeout)
        reader = CoercingRecordBatchReader(reader, target_schema)
        reader = FilterRecordBatchReader(reader, constraints)
        reader = ProjectionRecordBatchReader(reader, requested_pa)
        accumulator = BatchAccumulator(reader, requested_pa, self.max_batch_rows, block_size)

        result = ReadResult()
        pending: Deque[Future] = deque()
        emitted = 0
        with ThreadPoolExecutor(max_workers=self.worker_threads, thread_name_prefix="pyfederation-batch") as pool:
            try:
                while True:
                    try:
                        batch = accumulator.next_batch()
                    except TypeCoercionException as e:
                        logger.warning("Split %s stopped after %s batches: %s", split.id, emitted, e)
                        result.error = e
                        break
                    if batch is None:
                        break
                    emitted += 1
                    pending.append(pool.submit(self._to_entry, batch, split, encryption_key, inline_size))
                    while len(pending) > self.worker_threads:
                        result.entries.append(pending.popleft().result())
                while pending:
                    result.entries.append(pending.popleft().result())
            except BaseException:
                for future in pending:
                    future.cancel()
                raise
            finally:
                reader.close()

        if emitted == 0 and result.error is None:
            # an empty range still reports its schema
            result.entries.append(Block(pa.RecordBatch.from_pylist([], schema=requested_pa)))
        logger.info("Split %s produced %s entries", split.id, len(result.entries))
        return result

    @staticmethod
    def _limit(name: str, requested: Optional[int], configured: int) -> int:
        if requested is None:
            return configured
        if requested < 1:
            raise MalformedRequestException(f"{name} must be a positive integer, got {requested!r}")
        return requested

    def _to_entry(self, batch: pa.RecordBatch, split: Split, encryption_key, inline_size: int) -> ReadEntry:
        wire_size = Block.encoded_size(batch)
        if wire_size <= inline_size:
            return Block(batch)
        if self.spill_store is None:
            raise SpillFailureException(
                f"Batch of {wire_size} encoded bytes exceeds the inline limit of {inline_size}"
                " and no spill store is set")
        data = serialize_batch(batch)
        locator = self.spill_store.put_object(data, split.spill_location, encryption_key)
        logger.debug("Spilled batch of %s rows to %s", batch.num_rows, locator.key)
        return locator
