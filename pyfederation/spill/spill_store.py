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
import uuid
from abc import ABC, abstractmethod
from typing import Optional, Union

import pyarrow as pa

from pyfederation.common.bounded_call import bounded_call
from pyfederation.common.exceptions import (FederationException,
                                            SpillFailureException)
from pyfederation.common.options import Options
from pyfederation.common.options.config import SpillOptions
from pyfederation.spill.credentials import CredentialProvider
from pyfederation.spill.encryption import BlockCrypto
from pyfederation.spill.file_io import SpillFileIO
from pyfederation.spill.spill_location import (EncryptionKey, SpillLocation,
                                               SpillLocator)

logger = logging.getLogger(__name__)


def serialize_batch(batch: pa.RecordBatch) -> bytes:
    """A self-contained Arrow IPC stream: schema header then the batch."""
    sink = pa.BufferOutputStream()
    with pa.ipc.new_stream(sink, batch.schema) as writer:
        writer.write_batch(batch)
    return sink.getvalue().to_pybytes()


def decode_spilled(data: bytes) -> pa.Table:
    return pa.ipc.open_stream(pa.py_buffer(data)).read_all()


class SpillStore(ABC):
    """Write-once object storage for batches too large to return inline."""

    @abstractmethod
    def put_object(self, data: bytes, location: Optional[SpillLocation] = None,
                   encryption_key: Optional[EncryptionKey] = None) -> SpillLocator:
        """Stores data under a fresh path, below location when given."""

    @abstractmethod
    def get_object(self, locator: SpillLocator) -> bytes:
        """Returns the plain bytes a locator refers to."""

    def read_table(self, locator: SpillLocator) -> pa.Table:
        return decode_spilled(self.get_object(locator))


class FileIOSpillStore(SpillStore):

    def __init__(self, options: Union[Options, dict], credential_provider: Optional[CredentialProvider] = None):
        self.options = options if isinstance(options, Options) else Options(options)
        self.bucket = self.options.get(SpillOptions.BUCKET)
        if not self.bucket:
            raise ValueError(f"{SpillOptions.BUCKET.key()} must be set to spill")
        self.scheme = self.options.get(SpillOptions.SCHEME)
        self.prefix = self.options.get(SpillOptions.PREFIX).strip('/')
        self.timeout = self.options.get(SpillOptions.TIMEOUT)
        self.file_io = SpillFileIO(self._uri(self.bucket, self.prefix), self.options, credential_provider)

    def _uri(self, bucket: str, key: str) -> str:
        return "{}://{}/{}".format(self.scheme, bucket.rstrip('/'), key)

    def put_object(self, data: bytes, location: Optional[SpillLocation] = None,
                   encryption_key: Optional[EncryptionKey] = None) -> SpillLocator:
        bucket = location.bucket if location is not None else self.bucket
        base = location.key.strip('/') if location is not None else self.prefix
        key = "{}/{}".format(base, uuid.uuid4().hex)

        object_key = None
        if encryption_key is not None:
            object_key = BlockCrypto.with_fresh_nonce(encryption_key)
            data = BlockCrypto.encrypt(object_key, data)

        uri = self._uri(bucket, key)
        try:
            bounded_call("spill write", self.timeout, self.file_io.write_bytes, uri, data)
        except FederationException:
            raise
        except (OSError, pa.ArrowException) as e:
            raise SpillFailureException(f"Writing spill object {uri} failed: {e}", e)
        logger.debug("Spilled %s bytes to %s", len(data), uri)
        return SpillLocator(bucket=bucket, key=key, offset=0, length=len(data), encryption_key=object_key)

    def get_object(self, locator: SpillLocator) -> bytes:
        uri = self._uri(locator.bucket, locator.key)
        try:
            data = bounded_call("spill read", self.timeout, self.file_io.read_bytes,
                                uri, locator.offset, locator.length or -1)
        except FederationException:
            raise
        except (OSError, pa.ArrowException) as e:
            raise SpillFailureException(f"Reading spill object {uri} failed: {e}", e)
        if locator.encryption_key is not None:
            data = BlockCrypto.decrypt(locator.encryption_key, data)
        return data
