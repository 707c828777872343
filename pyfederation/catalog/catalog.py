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
from typing import Dict, List, NamedTuple

from pyfederation.common.table_name import TableName
from pyfederation.schema.schema import Schema


class PartitionLayout(NamedTuple):
    partition_cols: List[str]
    partition_values: Dict[str, List[str]]


class Catalog(ABC):
    """
    Read-only access to the registry of schemas, tables and their partition
    layouts of a federated source.
    """

    @abstractmethod
    def list_schemas(self) -> List[str]:
        """Schema names in catalog order."""

    @abstractmethod
    def list_tables(self, schema_name: str) -> List[TableName]:
        """Tables of the schema, raises SchemaNotExistException when it is unknown."""

    @abstractmethod
    def describe_table(self, table_name: TableName) -> Schema:
        """Schema of the table, raises TableNotExistException when it is unknown."""

    @abstractmethod
    def describe_layout(self, table_name: TableName) -> PartitionLayout:
        """Partition columns of the table and the values each one takes."""
