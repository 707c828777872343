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
import os
import re
from typing import Any, Dict, Tuple
from urllib.parse import urlparse

import pyarrow
from packaging.version import parse
from pyarrow import fs

from pyfederation.common.options import Options
from pyfederation.common.options.config import S3Options

S3_SCHEMES = frozenset(("s3", "s3a", "s3n"))


def _pyarrow_at_least(version: str) -> bool:
    return parse(pyarrow.__version__) >= parse(version)


class FileIO:
    """Whole-object reads and writes against a local directory or an S3 bucket."""

    def __init__(self, path: str, options: Options):
        self.properties = options
        self.logger = logging.getLogger(__name__)
        self.scheme, _, _ = self.parse_location(path)
        if self.scheme in S3_SCHEMES:
            self.filesystem = self._initialize_s3_fs()
        elif self.scheme == "file":
            self.filesystem = fs.LocalFileSystem()
        else:
            raise ValueError(f"Unsupported storage scheme '{self.scheme}' in {path}")

    @staticmethod
    def parse_location(location: str) -> Tuple[str, str, str]:
        """Splits a location into (scheme, bucket, path); bare paths are local."""
        uri = urlparse(location)
        if not uri.scheme:
            return "file", "", os.path.abspath(location)
        return uri.scheme, uri.netloc, f"{uri.netloc}{uri.path}"

    def _s3_client_kwargs(self) -> Dict[str, Any]:
        kwargs = {
            "endpoint_override": self.properties.get(S3Options.S3_ENDPOINT),
            "access_key": self.properties.get(S3Options.S3_ACCESS_KEY_ID),
            "secret_key": self.properties.get(S3Options.S3_ACCESS_KEY_SECRET),
            "session_token": self.properties.get(S3Options.S3_SECURITY_TOKEN),
            "region": self.properties.get(S3Options.S3_REGION),
            "request_timeout": 60,
            "connect_timeout": 60,
            "retry_strategy": fs.AwsStandardS3RetryStrategy(max_attempts=10),
        }
        if _pyarrow_at_least("15.0.0"):
            kwargs["force_virtual_addressing"] = True
        return kwargs

    def _initialize_s3_fs(self) -> fs.FileSystem:
        return fs.S3FileSystem(**self._s3_client_kwargs())

    def to_filesystem_path(self, path: str) -> str:
        """S3 filesystems take 'bucket/key', the local one takes a plain path."""
        parsed = urlparse(path)
        if not parsed.scheme:
            return path
        key = re.sub(r'/+', '/', parsed.path or '')
        if self.scheme in S3_SCHEMES:
            key = key.lstrip('/')
            return f"{parsed.netloc}/{key}" if key else parsed.netloc
        return key or '.'

    def new_input_stream(self, path: str):
        return self.filesystem.open_input_file(self.to_filesystem_path(path))

    def new_output_stream(self, path: str):
        target = self.to_filesystem_path(path)
        if self.scheme == "file":
            # object stores have no directories to create
            self.filesystem.create_dir(os.path.dirname(target), recursive=True)
        return self.filesystem.open_output_stream(target)

    def exists(self, path: str) -> bool:
        info = self.filesystem.get_file_info(self.to_filesystem_path(path))
        return info.type != fs.FileType.NotFound

    def read_bytes(self, path: str, offset: int = 0, length: int = -1) -> bytes:
        with self.new_input_stream(path) as stream:
            if offset:
                stream.seek(offset)
            return stream.read() if length < 0 else stream.read(length)

    def read_file_utf8(self, path: str) -> str:
        return self.read_bytes(path).decode('utf-8')

    def write_bytes(self, path: str, content: bytes, overwrite: bool = False):
        if not overwrite and self.exists(path):
            raise FileExistsError(f"Object {path} already exists")
        with self.new_output_stream(path) as stream:
            stream.write(content)
        self.logger.debug("Wrote %d bytes to %s", len(content), path)
