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

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from pyfederation.common.exceptions import SpillFailureException
from pyfederation.spill.spill_location import EncryptionKey

KEY_BITS = 256
NONCE_BYTES = 12


class BlockCrypto:
    """AES-GCM sealing of spilled objects, one key per split and a nonce per object."""

    @staticmethod
    def generate_key() -> EncryptionKey:
        return EncryptionKey(AESGCM.generate_key(bit_length=KEY_BITS), os.urandom(NONCE_BYTES))

    @staticmethod
    def derive_key(secret: str, context: str) -> EncryptionKey:
        """Same secret and context, same key; planning a page twice yields equal splits."""
        material = HKDF(algorithm=hashes.SHA256(), length=KEY_BITS // 8 + NONCE_BYTES, salt=None,
                        info=context.encode('utf-8')).derive(secret.encode('utf-8'))
        return EncryptionKey(material[:KEY_BITS // 8], material[KEY_BITS // 8:])

    @staticmethod
    def with_fresh_nonce(key: EncryptionKey) -> EncryptionKey:
        # a GCM nonce must never seal two objects under one key
        return EncryptionKey(key.key, os.urandom(NONCE_BYTES))

    @staticmethod
    def encrypt(key: EncryptionKey, data: bytes) -> bytes:
        return AESGCM(key.key).encrypt(key.nonce, data, None)

    @staticmethod
    def decrypt(key: EncryptionKey, data: bytes) -> bytes:
        try:
            return AESGCM(key.key).decrypt(key.nonce, data, None)
        except InvalidTag as e:
            raise SpillFailureException("Spilled object failed authentication", e)
