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

import re
from datetime import timedelta
from typing import Any, Type

from pyfederation.common.memory_size import MemorySize

_DURATION_UNITS = {
    "": 1.0, "s": 1.0, "sec": 1.0, "secs": 1.0, "second": 1.0, "seconds": 1.0,
    "ms": 0.001, "milli": 0.001, "millis": 0.001,
    "min": 60.0, "mins": 60.0, "minute": 60.0, "minutes": 60.0,
    "h": 3600.0, "hour": 3600.0, "hours": 3600.0,
}


class OptionsUtils:
    """Utility methods for options conversion."""

    @staticmethod
    def convert_value(value: Any, target_type: Type) -> Any:
        """
        Convert a raw option value to the target type.

        Raises:
            ValueError: If the conversion is not possible
        """
        if value is None:
            return None
        if isinstance(value, target_type) and not (target_type is int and isinstance(value, bool)):
            return value

        if target_type == str:
            return str(value)
        elif target_type == bool:
            return OptionsUtils.convert_to_boolean(value)
        elif target_type == int:
            return OptionsUtils.convert_to_int(value)
        elif target_type == float:
            return float(value.strip()) if isinstance(value, str) else float(value)
        elif target_type == MemorySize:
            return OptionsUtils.convert_to_memory_size(value)
        elif target_type == timedelta:
            return OptionsUtils.convert_to_duration(value)
        raise ValueError(f"Unsupported type: {target_type}")

    @staticmethod
    def convert_to_boolean(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lower_value = value.lower().strip()
            if lower_value in ('true', '1', 'yes', 'on'):
                return True
            elif lower_value in ('false', '0', 'no', 'off'):
                return False
            raise ValueError(f"Cannot convert '{value}' to boolean")
        if isinstance(value, (int, float)):
            return bool(value)
        raise ValueError(f"Cannot convert {type(value)} to boolean")

    @staticmethod
    def convert_to_int(value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Cannot convert {value} to int")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            return int(value.strip())
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValueError(f"Cannot convert {value!r} to int")

    @staticmethod
    def convert_to_memory_size(value: Any) -> MemorySize:
        if isinstance(value, int) and not isinstance(value, bool):
            return MemorySize.of_bytes(value)
        if isinstance(value, str):
            return MemorySize.parse(value)
        raise ValueError(f"Cannot convert {type(value)} to MemorySize")

    @staticmethod
    def convert_to_duration(value: Any) -> timedelta:
        """Plain numbers are seconds, strings may carry a unit such as '30 s' or '500 ms'."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return timedelta(seconds=value)
        if isinstance(value, str):
            match = re.match(r'^(\d+(?:\.\d+)?)\s*([a-zA-Z]*)$', value.strip())
            if match and match.group(2).lower() in _DURATION_UNITS:
                return timedelta(seconds=float(match.group(1)) * _DURATION_UNITS[match.group(2).lower()])
        raise ValueError(f"Cannot convert {value!r} to duration")
