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
import threading
import time
from datetime import timedelta
from typing import Any, Dict, Optional

from pyfederation.common.exceptions import SpillFailureException
from pyfederation.common.file_io import FileIO
from pyfederation.common.options import Options
from pyfederation.common.options.config import SpillOptions
from pyfederation.spill.credentials import (CredentialProvider,
                                            TemporaryCredentials)


class SpillFileIO(FileIO):
    """
    FileIO whose S3 filesystem is built from temporary credentials. The
    credentials are refreshed shortly before they expire and are never used
    past their expiry.
    """

    CREDENTIALS_EXPIRATION_SAFE_TIME_MILLIS = 60_000

    def __init__(self, path: str, options: Options, credential_provider: Optional[CredentialProvider] = None):
        self.credential_provider = credential_provider
        self.credentials: Optional[TemporaryCredentials] = None
        self.expire_at_millis: Optional[int] = None
        self.lock = threading.Lock()
        self.log = logging.getLogger(__name__)
        super().__init__(path, options)

    def _uses_credentials(self) -> bool:
        return self.credential_provider is not None and self.scheme != "file"

    def _s3_client_kwargs(self) -> Dict[str, Any]:
        client_kwargs = super()._s3_client_kwargs()
        if self._uses_credentials():
            if self.credentials is None:
                self._refresh_credentials()
            client_kwargs.update({
                "access_key": self.credentials.access_key_id,
                "secret_key": self.credentials.secret_access_key,
                "session_token": self.credentials.session_token,
            })
        return client_kwargs

    def try_to_refresh_credentials(self):
        if not self._uses_credentials():
            return
        if self.should_refresh():
            with self.lock:
                if self.should_refresh():
                    self._refresh_credentials()
                    self.filesystem = self._initialize_s3_fs()

    def should_refresh(self) -> bool:
        if self.credentials is None:
            return True
        if self.expire_at_millis is None:
            return False
        current_time = int(time.time() * 1000)
        return (self.expire_at_millis - current_time) < self.CREDENTIALS_EXPIRATION_SAFE_TIME_MILLIS

    def _refresh_credentials(self):
        duration: timedelta = self.properties.get(SpillOptions.CREDENTIALS_DURATION)
        self.log.info("begin refresh spill credentials from [%s]", self.credential_provider.description())
        credentials = self.credential_provider.assume_role(duration)
        try:
            expire_at_millis = credentials.expiration_at_millis()
        except ValueError as e:
            raise SpillFailureException(f"Invalid credential expiration {credentials.expiration}", e)
        if expire_at_millis is not None and expire_at_millis <= int(time.time() * 1000):
            raise SpillFailureException("Credential issuer returned already expired credentials")
        self.credentials = credentials
        self.expire_at_millis = expire_at_millis
        self.log.info("end refresh spill credentials, expiresAtMillis [%s]", expire_at_millis)

    def new_input_stream(self, path: str):
        self.try_to_refresh_credentials()
        return super().new_input_stream(path)

    def new_output_stream(self, path: str):
        self.try_to_refresh_credentials()
        return super().new_output_stream(path)

    def exists(self, path: str) -> bool:
        self.try_to_refresh_credentials()
        return super().exists(path)
