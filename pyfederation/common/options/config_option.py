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

from datetime import timedelta
from typing import Any, Generic, Optional, Type, TypeVar

from pyfederation.common.memory_size import MemorySize

T = TypeVar('T')


class ConfigOption(Generic[T]):
    """
    A ConfigOption describes a configuration parameter: its key, the type its
    value is converted to and an optional default value. Options are built via
    ConfigOptions and are immutable once created.
    """

    def __init__(self, key: str, clazz: Type, description: str = "", default_value: Any = None):
        if not key:
            raise ValueError("Key must not be null.")
        self._key = key
        self._clazz = clazz
        self._description = description
        self._default_value = default_value

    def key(self) -> str:
        return self._key

    def get_clazz(self) -> Type:
        return self._clazz

    def description(self) -> str:
        return self._description

    def has_default_value(self) -> bool:
        return self._default_value is not None

    def default_value(self) -> Any:
        return self._default_value

    def with_description(self, description: str) -> 'ConfigOption[T]':
        return ConfigOption(self._key, self._clazz, description, self._default_value)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConfigOption):
            return False
        return self._key == other._key and self._default_value == other._default_value

    def __hash__(self) -> int:
        return hash((self._key, self._default_value))

    def __str__(self) -> str:
        return f"key: '{self._key}'; default_value: {self._default_value}"


class ConfigOptions:
    """
    Entry point for building ConfigOptions, for example:

        max_rows = ConfigOptions.key("read.max-batch-rows").int_type().default_value(1000)
        bucket = ConfigOptions.key("spill.bucket").string_type().no_default_value()
    """

    @staticmethod
    def key(key: str) -> 'ConfigOptions.OptionBuilder':
        if not key:
            raise ValueError("Key must not be None or empty.")
        return ConfigOptions.OptionBuilder(key)

    class OptionBuilder:

        def __init__(self, key: str):
            self.key = key

        def boolean_type(self) -> 'ConfigOptions.TypedConfigOptionBuilder[bool]':
            return ConfigOptions.TypedConfigOptionBuilder(self.key, bool)

        def int_type(self) -> 'ConfigOptions.TypedConfigOptionBuilder[int]':
            return ConfigOptions.TypedConfigOptionBuilder(self.key, int)

        def float_type(self) -> 'ConfigOptions.TypedConfigOptionBuilder[float]':
            return ConfigOptions.TypedConfigOptionBuilder(self.key, float)

        def string_type(self) -> 'ConfigOptions.TypedConfigOptionBuilder[str]':
            return ConfigOptions.TypedConfigOptionBuilder(self.key, str)

        def duration_type(self) -> 'ConfigOptions.TypedConfigOptionBuilder[timedelta]':
            return ConfigOptions.TypedConfigOptionBuilder(self.key, timedelta)

        def memory_type(self) -> 'ConfigOptions.TypedConfigOptionBuilder[MemorySize]':
            return ConfigOptions.TypedConfigOptionBuilder(self.key, MemorySize)

    class TypedConfigOptionBuilder(Generic[T]):

        def __init__(self, key: str, clazz: Type[T]):
            self.key = key
            self.clazz = clazz

        def default_value(self, value: T) -> ConfigOption[T]:
            return ConfigOption(self.key, self.clazz, default_value=value)

        def no_default_value(self, description: Optional[str] = None) -> ConfigOption[T]:
            return ConfigOption(self.key, self.clazz, description=description or "")
