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

from typing import Any, Dict, List, Optional

from pyfederation.catalog.catalog import Catalog, PartitionLayout
from pyfederation.catalog.catalog_exception import (SchemaNotExistException,
                                                    TableNotExistException)
from pyfederation.common.table_name import TableName
from pyfederation.schema.data_types import DataField
from pyfederation.schema.schema import Schema


class _TableEntry:

    def __init__(self, schema: Schema, partition_cols: List[str], partition_values: Dict[str, List[str]]):
        for column in partition_cols:
            schema.field(column)
        self.schema = schema
        self.partition_cols = list(partition_cols)
        self.partition_values = {column: [str(v) for v in partition_values.get(column, [])]
                                 for column in partition_cols}


class MemoryCatalog(Catalog):
    """
    A catalog held in memory, built programmatically or from a declaration:

        {"schemas": {"sales": {"tables": {"orders": {
            "fields": [{"name": "region", "type": "STRING"}, {"name": "amount", "type": "DOUBLE"}],
            "partitionKeys": ["region"],
            "partitionValues": {"region": ["us", "eu"]}}}}}}
    """

    def __init__(self):
        self._schemas: Dict[str, Dict[str, _TableEntry]] = {}

    @staticmethod
    def from_declaration(declaration: Dict[str, Any]) -> "MemoryCatalog":
        if not isinstance(declaration, dict):
            raise ValueError("Catalog declaration must be a JSON object")
        catalog = MemoryCatalog()
        for schema_name, schema_decl in (declaration.get("schemas") or {}).items():
            catalog.create_schema(schema_name)
            for table, table_decl in ((schema_decl or {}).get("tables") or {}).items():
                fields = [DataField.from_dict(f) for f in table_decl.get("fields", [])]
                catalog.create_table(TableName(schema_name, table),
                                     Schema.from_fields(fields, table_decl.get("options")),
                                     table_decl.get("partitionKeys", []),
                                     table_decl.get("partitionValues", {}))
        return catalog

    def create_schema(self, schema_name: str, ignore_if_exists: bool = True):
        if schema_name in self._schemas:
            if ignore_if_exists:
                return
            raise ValueError(f"Schema {schema_name} already exists")
        self._schemas[schema_name] = {}

    def create_table(self, table_name: TableName, schema: Schema,
                     partition_cols: Optional[List[str]] = None,
                     partition_values: Optional[Dict[str, List[str]]] = None):
        tables = self._schemas.get(table_name.schema_name)
        if tables is None:
            raise SchemaNotExistException(table_name.schema_name)
        tables[table_name.table_name] = _TableEntry(schema, partition_cols or [], partition_values or {})

    def list_schemas(self) -> List[str]:
        return list(self._schemas.keys())

    def list_tables(self, schema_name: str) -> List[TableName]:
        tables = self._schemas.get(schema_name)
        if tables is None:
            raise SchemaNotExistException(schema_name)
        return [TableName(schema_name, table) for table in tables]

    def _entry(self, table_name: TableName) -> _TableEntry:
        tables = self._schemas.get(table_name.schema_name)
        if tables is None:
            raise SchemaNotExistException(table_name.schema_name)
        entry = tables.get(table_name.table_name)
        if entry is None:
            raise TableNotExistException(table_name)
        return entry

    def describe_table(self, table_name: TableName) -> Schema:
        return self._entry(table_name).schema

    def describe_layout(self, table_name: TableName) -> PartitionLayout:
        entry = self._entry(table_name)
        return PartitionLayout(list(entry.partition_cols),
                               {column: list(values) for column, values in entry.partition_values.items()})
