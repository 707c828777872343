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

from typing import Any, Dict, Optional

from pyfederation.common.options.config_option import ConfigOption
from pyfederation.common.options.options_utils import OptionsUtils


class Options:
    """String keyed connector settings, read through typed ConfigOptions."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = dict(data) if data else {}

    @classmethod
    def from_none(cls):
        return cls({})

    def get(self, option: ConfigOption, default=None):
        """An absent or null setting yields `default`, then the option's own default."""
        raw_value = self.data.get(option.key())
        if raw_value is None:
            return default if default is not None else option.default_value()
        try:
            return OptionsUtils.convert_value(raw_value, option.get_clazz())
        except ValueError as e:
            raise ValueError(f"Invalid value for {option.key()}: {e}") from e
