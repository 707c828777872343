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
from typing import Dict, Optional

from pyfederation.common.json_util import json_field, optional_json_field
from pyfederation.common.table_name import TableName
from pyfederation.spill.spill_location import EncryptionKey, SpillLocation


@dataclass(frozen=True)
class Split:
    """
    An independently executable unit of a table scan. The properties address
    the physical range, nothing in a split refers to live state.
    """

    FIELD_ID = "id"
    FIELD_PROPERTIES = "properties"
    FIELD_SPILL_LOCATION = "spillLocation"
    FIELD_ENCRYPTION_KEY = "encryptionKey"

    id: str = json_field(FIELD_ID)
    properties: Dict[str, str] = json_field(FIELD_PROPERTIES, default_factory=dict)
    spill_location: Optional[SpillLocation] = optional_json_field(FIELD_SPILL_LOCATION)
    encryption_key: Optional[EncryptionKey] = optional_json_field(FIELD_ENCRYPTION_KEY)

    def __post_init__(self):
        for key, value in self.properties.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ValueError(f"Split properties must map strings to strings, got {key!r}: {value!r}")

    @staticmethod
    def split_id(table_name: TableName, properties: Dict[str, str]) -> str:
        canonical = json.dumps({"table": table_name.get_full_name(), "properties": properties}, sort_keys=True)
        return hashlib.sha256(canonical.encode('utf-8')).hexdigest()[:32]

    @classmethod
    def create(cls, table_name: TableName, properties: Dict[str, str],
               spill_location: Optional[SpillLocation] = None,
               encryption_key: Optional[EncryptionKey] = None) -> "Split":
        return cls(cls.split_id(table_name, properties), dict(properties), spill_location, encryption_key)

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.properties.get(key, default)

    def __hash__(self):
        return hash(self.id)
