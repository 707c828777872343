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

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pyfederation.common.json_util import json_field, optional_json_field


@dataclass(frozen=True)
class EncryptionKey:
    """AES-GCM key and nonce, base64 encoded on the wire."""

    key: bytes
    nonce: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": base64.b64encode(self.key).decode('ascii'),
            "nonce": base64.b64encode(self.nonce).decode('ascii'),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptionKey":
        if not isinstance(data, dict) or not isinstance(data.get("key"), str) \
                or not isinstance(data.get("nonce"), str):
            raise ValueError("EncryptionKey must carry base64 'key' and 'nonce' strings")
        try:
            return cls(base64.b64decode(data["key"], validate=True), base64.b64decode(data["nonce"], validate=True))
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 in encryption key: {e}") from e

    def __repr__(self):
        return "EncryptionKey(****)"


@dataclass(frozen=True)
class SpillLocation:
    """The staging prefix a split may spill under."""

    FIELD_BUCKET = "bucket"
    FIELD_KEY = "key"
    FIELD_DIRECTORY = "directory"

    bucket: str = json_field(FIELD_BUCKET)
    key: str = json_field(FIELD_KEY)
    directory: bool = json_field(FIELD_DIRECTORY, default=True)


@dataclass(frozen=True)
class SpillLocator:
    """Points at one spilled, self-contained Arrow IPC stream object."""

    FIELD_BUCKET = "bucket"
    FIELD_KEY = "key"
    FIELD_OFFSET = "offset"
    FIELD_LENGTH = "length"
    FIELD_ENCRYPTION_KEY = "encryptionKey"

    bucket: str = json_field(FIELD_BUCKET)
    key: str = json_field(FIELD_KEY)
    offset: int = json_field(FIELD_OFFSET, default=0)
    length: int = json_field(FIELD_LENGTH, default=0)
    encryption_key: Optional[EncryptionKey] = optional_json_field(FIELD_ENCRYPTION_KEY)

    def is_encrypted(self) -> bool:
        return self.encryption_key is not None
