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
from typing import Dict, List, Optional, Tuple, Union

import pyarrow as pa

from pyfederation.common.constraints import Constraints
from pyfederation.common.exceptions import (MalformedRequestException,
                                            TypeCoercionException)
from pyfederation.common.options import Options
from pyfederation.common.options.config import PlannerOptions, SpillOptions
from pyfederation.read.continuation_token import (ContinuationToken,
                                                  fingerprint)
from pyfederation.read.split import Split
from pyfederation.schema.table_layout import TableLayout
from pyfederation.spill.encryption import BlockCrypto
from pyfederation.spill.spill_location import SpillLocation

logger = logging.getLogger(__name__)


class SplitPlanner:
    """
    Turns a table layout into pages of splits. Each partition column's value
    domain is pruned by that column's constraint and sorted, the splits are
    the cartesian product of the pruned domains in lexicographic order, and
    a continuation token is the index of the next split in that product.
    Pruned combinations are never built.
    """

    def __init__(self, options: Union[Options, dict, None] = None):
        self.options = options if isinstance(options, Options) else Options(options)
        self.default_page_size = self.options.get(PlannerOptions.MAX_SPLITS_PER_PAGE)
        self.spill_bucket = self.options.get(SpillOptions.BUCKET)
        self.spill_prefix = self.options.get(SpillOptions.PREFIX).strip('/')
        self.encryption_enabled = self.options.get(SpillOptions.ENCRYPTION_ENABLED)
        self.encryption_secret = self.options.get(SpillOptions.ENCRYPTION_SECRET)

    def plan(self, layout: TableLayout, constraints: Optional[Constraints] = None,
             token: Optional[str] = None, page_size: Optional[int] = None,
             query_id: str = "") -> Tuple[List[Split], Optional[str]]:
        constraints = constraints or Constraints.empty()
        page_size = self.default_page_size if page_size is None else page_size
        if page_size < 1:
            raise MalformedRequestException(f"Page size must be at least 1, got {page_size}")
        constraints.check_columns(layout.schema.field_names())

        domains = [self._qualifying_values(layout, column, constraints) for column in layout.partition_cols]
        total = 1
        for domain in domains:
            total *= len(domain)

        table_fingerprint = fingerprint(layout, constraints)
        position = 0
        if token is not None:
            decoded = ContinuationToken.decode(token)
            if decoded.fingerprint != table_fingerprint:
                raise MalformedRequestException("Continuation token was issued for another table or constraints")
            if decoded.position >= total:
                raise MalformedRequestException(
                    f"Continuation token position {decoded.position} is past the end of {total} splits")
            position = decoded.position

        end = min(total, position + page_size)
        splits = [self._new_split(layout, self._combination(layout.partition_cols, domains, index), query_id)
                  for index in range(position, end)]
        next_token = ContinuationToken(end, table_fingerprint).encode() if end < total else None
        logger.info("Planned splits [%s, %s) of %s for %s", position, end, total, layout.table_name)
        return splits, next_token

    @staticmethod
    def _qualifying_values(layout: TableLayout, column: str, constraints: Constraints) -> List[str]:
        values = sorted(set(layout.partition_values.get(column, [])))
        predicate = constraints.get(column)
        if predicate is None or not values:
            return values
        target_type = layout.schema.to_pyarrow().field(column).type
        try:
            typed = pa.array(values, type=pa.string()).cast(target_type, safe=True)
        except (pa.ArrowInvalid, pa.ArrowNotImplementedError) as e:
            raise TypeCoercionException(column, target_type, "partition value domain", e)
        try:
            mask = predicate.test_by_arrow(typed).to_pylist()
        except (ValueError, pa.ArrowNotImplementedError) as e:
            raise MalformedRequestException(f"Constraint on {column} cannot be evaluated: {e}", e)
        return [value for value, keep in zip(values, mask) if keep]

    @staticmethod
    def _combination(columns: List[str], domains: List[List[str]], index: int) -> Dict[str, str]:
        # mixed radix, the last column varies fastest
        properties = {}
        for column, domain in reversed(list(zip(columns, domains))):
            index, digit = divmod(index, len(domain))
            properties[column] = domain[digit]
        return {column: properties[column] for column in columns}

    def _new_split(self, layout: TableLayout, properties: Dict[str, str], query_id: str) -> Split:
        split_id = Split.split_id(layout.table_name, properties)
        spill_location = None
        if self.spill_bucket:
            key = "/".join(part for part in (self.spill_prefix, query_id, split_id) if part)
            spill_location = SpillLocation(self.spill_bucket, key, True)
        encryption_key = None
        if self.encryption_enabled and spill_location and self.encryption_secret:
            encryption_key = BlockCrypto.derive_key(self.encryption_secret, spill_location.key)
        return Split(split_id, properties, spill_location, encryption_key)
