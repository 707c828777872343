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
import hashlib
import json
from dataclasses import dataclass

from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import MalformedRequestException
from pyfederation.schema.table_layout import TableLayout

TOKEN_VERSION = 1


def fingerprint(layout: TableLayout, constraints: Constraints) -> str:
    """Binds a token to the table, value domains and constraints it was issued for."""
    canonical = json.dumps({
        "table": layout.table_name.get_full_name(),
        "partitionCols": layout.partition_cols,
        "partitionValues": layout.partition_values,
        "constraints": constraints.fingerprint(),
    }, sort_keys=True)
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()[:32]


@dataclass(frozen=True)
class ContinuationToken:
    position: int
    fingerprint: str
    version: int = TOKEN_VERSION

    def encode(self) -> str:
        payload = json.dumps({"v": self.version, "p": self.position, "f": self.fingerprint},
                             separators=(',', ':'))
        return base64.urlsafe_b64encode(payload.encode('utf-8')).decode('ascii')

    @staticmethod
    def decode(token: str) -> "ContinuationToken":
        try:
            data = json.loads(base64.urlsafe_b64decode(token.encode('ascii')).decode('utf-8'))
        except (binascii.Error, UnicodeError, ValueError, AttributeError) as e:
            raise MalformedRequestException(f"Undecodable continuation token: {token!r}", e)
        if not isinstance(data, dict):
            raise MalformedRequestException(f"Undecodable continuation token: {token!r}")
        version, position, token_fingerprint = data.get("v"), data.get("p"), data.get("f")
        if version != TOKEN_VERSION:
            raise MalformedRequestException(f"Unsupported continuation token version: {version!r}")
        if not isinstance(position, int) or isinstance(position, bool) or position < 0 \
                or not isinstance(token_fingerprint, str):
            raise MalformedRequestException(f"Invalid continuation token: {token!r}")
        return ContinuationToken(position, token_fingerprint, version)
