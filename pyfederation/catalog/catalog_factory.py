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

import json
from typing import Any, Dict, Optional, Union

from pyfederation.catalog.catalog import Catalog
from pyfederation.catalog.memory_catalog import MemoryCatalog
from pyfederation.common.file_io import FileIO
from pyfederation.common.options import Options
from pyfederation.common.options.config import CatalogOptions


def _memory_catalog(options: Options, declaration: Optional[Dict[str, Any]]) -> Catalog:
    if declaration is None:
        definition = options.get(CatalogOptions.DEFINITION)
        declaration = json.loads(definition) if definition else {}
    return MemoryCatalog.from_declaration(declaration)


def _file_catalog(options: Options, declaration: Optional[Dict[str, Any]]) -> Catalog:
    path = options.get(CatalogOptions.DEFINITION)
    if not path:
        raise ValueError(f"{CatalogOptions.DEFINITION.key()} must name the catalog definition file")
    file_io = FileIO(path, options)
    return MemoryCatalog.from_declaration(json.loads(file_io.read_file_utf8(path)))


class CatalogFactory:

    CATALOG_REGISTRY = {
        "memory": _memory_catalog,
        "file": _file_catalog,
    }

    @staticmethod
    def create(catalog_options: Union[Options, dict], declaration: Optional[Dict[str, Any]] = None) -> Catalog:
        options = catalog_options if isinstance(catalog_options, Options) else Options(catalog_options)
        identifier = options.get(CatalogOptions.METASTORE)
        catalog_builder = CatalogFactory.CATALOG_REGISTRY.get(identifier)
        if catalog_builder is None:
            raise ValueError(f"Unknown catalog identifier: {identifier}. "
                             f"Available types: {list(CatalogFactory.CATALOG_REGISTRY.keys())}")
        return catalog_builder(options, declaration)
