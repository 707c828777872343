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

from pyfederation.common.exceptions import NotFoundException
from pyfederation.common.table_name import TableName


class SchemaNotExistException(NotFoundException):
    """Schema not exist exception"""

    def __init__(self, schema: str):
        self.schema = schema
        super().__init__(f"Schema {schema} does not exist")


class TableNotExistException(NotFoundException):
    """Table not exist exception"""

    def __init__(self, table_name: TableName):
        self.table_name = table_name
        super().__init__(f"Table {table_name.get_full_name()} does not exist")


class ColumnNotExistException(NotFoundException):
    """Column not exist exception"""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column {column} does not exist")
