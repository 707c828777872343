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
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urljoin

import requests
from requests.exceptions import RequestException

from pyfederation.common.exceptions import SpillFailureException
from pyfederation.common.json_util import JSON, json_field, optional_json_field
from pyfederation.common.options import Options
from pyfederation.common.options.config import S3Options

logger = logging.getLogger(__name__)


@dataclass
class TemporaryCredentials:
    TOKEN_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

    access_key_id: str = json_field('AccessKeyId')
    secret_access_key: str = json_field('SecretAccessKey')
    session_token: Optional[str] = optional_json_field('Token')
    expiration: Optional[str] = optional_json_field('Expiration')

    @staticmethod
    def parse_expiration_to_millis(expiration: str) -> int:
        date_time = datetime.strptime(expiration, TemporaryCredentials.TOKEN_DATE_FORMAT)
        return int(date_time.replace(tzinfo=timezone.utc).timestamp() * 1000)

    def expiration_at_millis(self) -> Optional[int]:
        """None for credentials that do not expire."""
        if self.expiration is None:
            return None
        return self.parse_expiration_to_millis(self.expiration)


class CredentialProvider(ABC):

    @abstractmethod
    def assume_role(self, duration: timedelta) -> TemporaryCredentials:
        """Issue credentials valid for about the requested duration."""

    @abstractmethod
    def description(self) -> str:
        pass


class StaticCredentialProvider(CredentialProvider):
    """Hands out the fs.s3.* keys from the options, which never expire."""

    def __init__(self, options: Options):
        self.options = options

    def assume_role(self, duration: timedelta) -> TemporaryCredentials:
        access_key_id = self.options.get(S3Options.S3_ACCESS_KEY_ID)
        secret = self.options.get(S3Options.S3_ACCESS_KEY_SECRET)
        if access_key_id is None or secret is None:
            raise SpillFailureException(
                f"{S3Options.S3_ACCESS_KEY_ID.key()} and {S3Options.S3_ACCESS_KEY_SECRET.key()} must be set")
        return TemporaryCredentials(access_key_id, secret, self.options.get(S3Options.S3_SECURITY_TOKEN))

    def description(self) -> str:
        return "static"


class HttpCredentialProvider(CredentialProvider):
    """
    Loads temporary credentials from a metadata style endpoint. The role is
    fetched from the endpoint itself when not configured, then
    <url>/<role>?DurationSeconds=<n> returns the credentials as JSON.
    """

    def __init__(self, url: str, role: Optional[str] = None, timeout_seconds: float = 10):
        self.url = url
        self.role = role
        self.timeout_seconds = timeout_seconds
        self.session = requests.Session()

    def assume_role(self, duration: timedelta) -> TemporaryCredentials:
        try:
            if self.role is None:
                self.role = self._get_response_body(self.url).strip()
            credentials_url = urljoin(self.url.rstrip('/') + '/', self.role)
            body = self._get_response_body(
                credentials_url, params={"DurationSeconds": int(duration.total_seconds())})
            credentials = JSON.from_json(body, TemporaryCredentials)
        except SpillFailureException:
            raise
        except (RequestException, ValueError) as e:
            raise SpillFailureException(f"Loading spill credentials from {self.url} failed: {e}", e)
        logger.info("Loaded spill credentials from %s expiring at %s", self.url, credentials.expiration)
        return credentials

    def description(self) -> str:
        return self.url

    def _get_response_body(self, url: str, **kwargs) -> str:
        response = self.session.get(url, timeout=self.timeout_seconds, **kwargs)
        if not response.ok:
            raise SpillFailureException(
                f"Credential endpoint answered {response.status_code} {response.reason}")
        return response.text

    def close(self):
        self.session.close()
