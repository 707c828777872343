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
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from typing import Callable, Optional, TypeVar, Union

from pyfederation.common.exceptions import OperationTimeoutException

T = TypeVar('T')

logger = logging.getLogger(__name__)

_IO_EXECUTOR = ThreadPoolExecutor(max_workers=16, thread_name_prefix="pyfederation-io")


def _to_seconds(timeout: Union[None, float, timedelta]) -> Optional[float]:
    if timeout is None:
        return None
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


def bounded_call(operation: str, timeout: Union[None, float, timedelta], fn: Callable[..., T], *args, **kwargs) -> T:
    """
    Runs fn on the shared I/O pool and waits at most timeout for its result.
    Exceptions raised by fn propagate unchanged. A call that does not finish in
    time raises OperationTimeoutException, the worker is abandoned, not cancelled.
    """
    seconds = _to_seconds(timeout)
    if seconds is None or seconds <= 0:
        return fn(*args, **kwargs)

    future = _IO_EXECUTOR.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=seconds)
    except FutureTimeoutError:
        if future.done():
            # fn itself raised a TimeoutError
            raise
        future.cancel()
        logger.warning("%s timed out after %s seconds", operation, seconds)
        raise OperationTimeoutException(operation, seconds)
