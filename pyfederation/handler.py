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
from typing import Optional, Union

from pyfederation.catalog.catalog import Catalog
from pyfederation.catalog.catalog_facade import CatalogFacade
from pyfederation.common.exceptions import FederationException
from pyfederation.common.options import Options
from pyfederation.common.options.config import SpillOptions
from pyfederation.dispatcher import Dispatcher, error_response
from pyfederation.protocol.codec import decode_request, encode_response
from pyfederation.read.batch_executor import BatchExecutor
from pyfederation.read.reader.data_source import DataSource
from pyfederation.read.split_planner import SplitPlanner
from pyfederation.spill.credentials import (CredentialProvider,
                                            HttpCredentialProvider)
from pyfederation.spill.spill_store import FileIOSpillStore, SpillStore

logger = logging.getLogger(__name__)


class FederationHandler:
    """Bytes in, bytes out: decode, dispatch, encode. Never raises."""

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher

    @staticmethod
    def create(options: Union[Options, dict], catalog: Catalog, data_source: DataSource,
               spill_store: Optional[SpillStore] = None,
               credential_provider: Optional[CredentialProvider] = None) -> "FederationHandler":
        options = options if isinstance(options, Options) else Options(options)
        if credential_provider is None and options.get(SpillOptions.CREDENTIALS_URL):
            credential_provider = HttpCredentialProvider(options.get(SpillOptions.CREDENTIALS_URL),
                                                         options.get(SpillOptions.CREDENTIALS_ROLE))
        if spill_store is None and options.get(SpillOptions.BUCKET):
            spill_store = FileIOSpillStore(options, credential_provider)
        dispatcher = Dispatcher(CatalogFacade(catalog, options), SplitPlanner(options),
                                BatchExecutor(data_source, spill_store, options), options)
        return FederationHandler(dispatcher)

    def handle_bytes(self, payload: bytes) -> bytes:
        try:
            request = decode_request(payload)
        except FederationException as e:
            logger.info("Rejected payload: %s", e)
            return encode_response(error_response(e))
        except Exception as e:
            logger.exception("Failed to decode payload")
            return encode_response(error_response(e))

        response = self.dispatcher.handle(request)
        try:
            return encode_response(response)
        except Exception as e:
            logger.exception("Failed to encode %s", type(response).__name__)
            return encode_response(error_response(e))
