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
"""
Wire codec: UTF-8 JSON envelopes tagged with "@type" and "protocolVersion".
Unknown members are ignored, an absent version means version 1.
"""

import json
import logging
from typing import Any, Dict, Type

from pyfederation.common.exceptions import (FederationException,
                                            MalformedRequestException,
                                            UnsupportedOperationException,
                                            UnsupportedVersionException)
from pyfederation.common.json_util import JSON
from pyfederation.common.options.config import ProtocolOptions
from pyfederation.protocol.requests import REQUEST_TYPES, FederationRequest
from pyfederation.protocol.responses import (RESPONSE_TYPES,
                                             FederationResponse)

logger = logging.getLogger(__name__)

FIELD_TYPE = "@type"
FIELD_PROTOCOL_VERSION = "protocolVersion"
DEFAULT_PROTOCOL_VERSION = 1


def _parse_envelope(payload: bytes, min_version: int, max_version: int) -> Dict[str, Any]:
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise MalformedRequestException(f"Payload must be bytes, got {type(payload).__name__}")
    try:
        text = bytes(payload).decode('utf-8')
    except UnicodeDecodeError as e:
        raise MalformedRequestException("Payload is not valid UTF-8", e)
    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedRequestException(f"Payload is not valid JSON: {e}", e)
    if not isinstance(data, dict):
        raise MalformedRequestException(f"Payload must be a JSON object, got {type(data).__name__}")

    type_tag = data.get(FIELD_TYPE)
    if not isinstance(type_tag, str) or not type_tag:
        raise MalformedRequestException(f"Payload has no valid '{FIELD_TYPE}' member")

    version = data.get(FIELD_PROTOCOL_VERSION, DEFAULT_PROTOCOL_VERSION)
    if not isinstance(version, int) or isinstance(version, bool):
        raise MalformedRequestException(f"'{FIELD_PROTOCOL_VERSION}' must be an integer, got {version!r}")
    if version < min_version or version > max_version:
        raise UnsupportedVersionException(version, min_version, max_version)
    return data


def _decode_body(data: Dict[str, Any], clazz: Type):
    try:
        return JSON.from_dict(data, clazz)
    except FederationException as e:
        # e.g. a layout naming a column its own schema lacks
        raise MalformedRequestException(f"Invalid {clazz.__name__}: {e}", e)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        raise MalformedRequestException(f"Invalid {clazz.__name__}: {e}", e)


def _encode(value: Any, version: int) -> bytes:
    body = JSON.to_dict(value)
    envelope = {FIELD_TYPE: type(value).__name__, FIELD_PROTOCOL_VERSION: version}
    envelope.update(body)
    return json.dumps(envelope, ensure_ascii=False).encode('utf-8')


def decode_request(payload: bytes,
                   min_version: int = ProtocolOptions.MIN_VERSION,
                   max_version: int = ProtocolOptions.MAX_VERSION) -> FederationRequest:
    data = _parse_envelope(payload, min_version, max_version)
    clazz = REQUEST_TYPES.get(data[FIELD_TYPE])
    if clazz is None:
        raise UnsupportedOperationException(data[FIELD_TYPE])
    request = _decode_body(data, clazz)
    logger.debug("Decoded %s", data[FIELD_TYPE])
    return request


def encode_request(request: FederationRequest, version: int = ProtocolOptions.MAX_VERSION) -> bytes:
    if type(request).__name__ not in REQUEST_TYPES:
        raise TypeError(f"Not a request: {type(request).__name__}")
    return _encode(request, version)


def encode_response(response: FederationResponse, version: int = ProtocolOptions.MAX_VERSION) -> bytes:
    if type(response).__name__ not in RESPONSE_TYPES:
        raise TypeError(f"Not a response: {type(response).__name__}")
    return _encode(response, version)


def decode_response(payload: bytes,
                    min_version: int = ProtocolOptions.MIN_VERSION,
                    max_version: int = ProtocolOptions.MAX_VERSION) -> FederationResponse:
    data = _parse_envelope(payload, min_version, max_version)
    clazz = RESPONSE_TYPES.get(data[FIELD_TYPE])
    if clazz is None:
        raise MalformedRequestException(f"Unknown response type: {data[FIELD_TYPE]}")
    return _decode_body(data, clazz)
