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
from typing import Dict, List

from pyfederation.common.json_util import json_field
from pyfederation.common.table_name import TableName
from pyfederation.schema.schema import Schema


@dataclass
class TableLayout:
    """
    How a table is partitioned: the partition columns in enumeration order and,
    for each, the sorted domain of values a split may address.
    """

    FIELD_TABLE_NAME = "tableName"
    FIELD_SCHEMA = "schema"
    FIELD_PARTITION_COLS = "partitionCols"
    FIELD_PARTITION_VALUES = "partitionValues"

    table_name: TableName = json_field(FIELD_TABLE_NAME)
    schema: Schema = json_field(FIELD_SCHEMA)
    partition_cols: List[str] = json_field(FIELD_PARTITION_COLS, default_factory=list)
    partition_values: Dict[str, List[str]] = json_field(FIELD_PARTITION_VALUES, default_factory=dict)

    def __post_init__(self):
        for column in self.partition_cols:
            self.schema.field(column)
            if column not in self.partition_values:
                raise ValueError(f"Partition column {column} has no value domain")
        extra = set(self.partition_values) - set(self.partition_cols)
        if extra:
            raise ValueError(f"Value domains given for non-partition columns: {sorted(extra)}")
