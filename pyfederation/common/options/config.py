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

from pyfederation.common.memory_size import MemorySize
from pyfederation.common.options.config_option import ConfigOptions


class ProtocolOptions:
    MIN_VERSION = 1
    MAX_VERSION = 1
    SOURCE_TYPE = ConfigOptions.key("source.type").string_type().default_value("pyfederation").with_description(
        "Source type reported by ping")


class ReadOptions:
    MAX_BATCH_ROWS = ConfigOptions.key("read.max-batch-rows").int_type().default_value(1000000).with_description(
        "Maximum number of rows in a single record batch")
    MAX_BLOCK_SIZE = ConfigOptions.key("read.max-block-size").memory_type().default_value(
        MemorySize.of_mebi_bytes(16)).with_description("Maximum accumulated size of a record batch")
    MAX_INLINE_BLOCK_SIZE = ConfigOptions.key("read.max-inline-block-size").memory_type().default_value(
        MemorySize.of_mebi_bytes(5)).with_description("Batches serializing larger than this are spilled")
    WORKER_THREADS = ConfigOptions.key("read.worker-threads").int_type().default_value(2).with_description(
        "Workers overlapping source reads with batch serialization")
    TIMEOUT = ConfigOptions.key("read.timeout").duration_type().default_value(
        timedelta(seconds=300)).with_description("Bound on every data source read")


class PlannerOptions:
    MAX_SPLITS_PER_PAGE = ConfigOptions.key("planner.max-splits-per-page").int_type().default_value(
        1000).with_description("Default page size of get-splits")


class CatalogOptions:
    METASTORE = ConfigOptions.key("metastore").string_type().default_value("memory").with_description(
        "Catalog collaborator type")
    DEFINITION = ConfigOptions.key("catalog.definition").string_type().no_default_value().with_description(
        "Location of a JSON catalog definition")
    TIMEOUT = ConfigOptions.key("catalog.timeout").duration_type().default_value(
        timedelta(seconds=30)).with_description("Bound on every catalog lookup")
    CACHE_ENABLED = ConfigOptions.key("catalog.cache-enabled").boolean_type().default_value(
        False).with_description("Enable the best-effort metadata cache")
    CACHE_TTL = ConfigOptions.key("catalog.cache.expire-after-write").duration_type().default_value(
        timedelta(seconds=300)).with_description("Metadata cache TTL")
    CACHE_MAX_SIZE = ConfigOptions.key("catalog.cache.max-size").int_type().default_value(1000).with_description(
        "Maximum number of cached tables")


class SpillOptions:
    BUCKET = ConfigOptions.key("spill.bucket").string_type().no_default_value().with_description(
        "Bucket receiving spilled batches")
    PREFIX = ConfigOptions.key("spill.prefix").string_type().default_value("athena-spill").with_description(
        "Key prefix of spilled batches")
    SCHEME = ConfigOptions.key("spill.scheme").string_type().default_value("s3").with_description(
        "Filesystem scheme of the spill bucket, s3 or file")
    ENCRYPTION_ENABLED = ConfigOptions.key("spill.encryption-enabled").boolean_type().default_value(
        True).with_description("Encrypt spilled batches with AES-GCM")
    ENCRYPTION_SECRET = ConfigOptions.key("spill.encryption-secret").string_type().no_default_value().with_description(
        "Secret split keys are derived from; without it each read generates its own key")
    TIMEOUT = ConfigOptions.key("spill.timeout").duration_type().default_value(
        timedelta(seconds=60)).with_description("Bound on every spill write and read")
    CREDENTIALS_DURATION = ConfigOptions.key("spill.credentials.duration").duration_type().default_value(
        timedelta(seconds=900)).with_description("Requested lifetime of spill credentials")
    CREDENTIALS_URL = ConfigOptions.key("spill.credentials.url").string_type().no_default_value().with_description(
        "HTTP endpoint issuing temporary spill credentials")
    CREDENTIALS_ROLE = ConfigOptions.key("spill.credentials.role").string_type().no_default_value().with_description(
        "Role assumed for spill access")


class S3Options:
    S3_ACCESS_KEY_ID = ConfigOptions.key("fs.s3.accessKeyId").string_type().no_default_value().with_description(
        "S3 access key ID")
    S3_ACCESS_KEY_SECRET = ConfigOptions.key("fs.s3.accessKeySecret").string_type().no_default_value().with_description(
        "S3 access key secret")
    S3_SECURITY_TOKEN = ConfigOptions.key("fs.s3.securityToken").string_type().no_default_value().with_description(
        "S3 security token")
    S3_ENDPOINT = ConfigOptions.key("fs.s3.endpoint").string_type().no_default_value().with_description("S3 endpoint")
    S3_REGION = ConfigOptions.key("fs.s3.region").string_type().no_default_value().with_description("S3 region")
