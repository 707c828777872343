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
from dataclasses import dataclass

from pyfederation.common.json_util import json_field


@dataclass(frozen=True)
class TableName:

    FIELD_SCHEMA_NAME = "schemaName"
    FIELD_TABLE_NAME = "tableName"

    schema_name: str = json_field(FIELD_SCHEMA_NAME)
    table_name: str = json_field(FIELD_TABLE_NAME)

    @classmethod
    def create(cls, schema_name: str, table_name: str) -> "TableName":
        return cls(schema_name, table_name)

    @classmethod
    def from_string(cls, full_name: str) -> "TableName":
        parts = full_name.split(".", 1)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError("Invalid table name format: {}".format(full_name))
        return cls(parts[0], parts[1])

    def get_full_name(self) -> str:
        return "{}.{}".format(self.schema_name, self.table_name)

    def get_schema_name(self) -> str:
        return self.schema_name

    def get_table_name(self) -> str:
        return self.table_name

    def __str__(self) -> str:
        return self.get_full_name()
