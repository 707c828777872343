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

from typing import Any, Dict, Optional, Type


class FederationException(Exception):
    """Base exception, reported to the caller as an error response."""

    kind = "Internal"

    def __init__(self, message: str = None, cause: Optional[Exception] = None):
        super().__init__(message or "Federation request failed")
        self.__cause__ = cause

    def get_message(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        if self.__cause__:
            return f"{self.__class__.__name__}('{self}', caused by {type(self.__cause__).__name__}: {self.__cause__})"
        return f"{self.__class__.__name__}('{self}')"


class ProtocolException(FederationException):
    """Payload could not be understood at the envelope level."""

    kind = "Malformed"


class MalformedRequestException(ProtocolException):

    kind = "Malformed"


class UnsupportedVersionException(ProtocolException):

    kind = "UnsupportedVersion"

    def __init__(self, version: Any, min_version: int, max_version: int):
        self.version = version
        self.min_version = min_version
        self.max_version = max_version
        super().__init__(
            f"Protocol version {version} is not supported, supported range is [{min_version}, {max_version}]")


class UnsupportedOperationException(FederationException):

    kind = "UnsupportedOperation"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unsupported operation: {operation}")


class NotFoundException(FederationException):

    kind = "NotFound"


class CatalogUnavailableException(FederationException):
    """Transient metadata failure, the caller may retry with backoff."""

    kind = "CatalogUnavailable"


class OperationTimeoutException(FederationException):

    kind = "Timeout"

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{operation} did not complete within {timeout_seconds} seconds")


class TypeCoercionException(FederationException):

    kind = "TypeCoercionError"

    def __init__(self, column: str, target_type: Any, reason: str = None, cause: Optional[Exception] = None):
        self.column = column
        self.target_type = target_type
        message = f"Cannot convert column {column} to {target_type}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, cause)


class SpillFailureException(FederationException):

    kind = "SpillFailure"


def exception_kinds() -> Dict[str, Type[FederationException]]:
    """Maps every error kind to the most general exception carrying it."""
    kinds = {}
    pending = [FederationException]
    while pending:
        clazz = pending.pop(0)
        kinds.setdefault(clazz.kind, clazz)
        pending.extend(clazz.__subclasses__())
    return kinds


def exception_from_kind(kind: str, message: str) -> FederationException:
    clazz = exception_kinds().get(kind, FederationException)
    exception = clazz.__new__(clazz)
    FederationException.__init__(exception, message)
    return exception
