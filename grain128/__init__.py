"""
Библиотека потокового шифра Grain-128

Ключ 128 бит, IV 96 бит (или 128 бит), ключевой поток побайтно
(первый сгенерированный бит - младший бит байта).
Шифр не обеспечивает аутентификацию и не защищает от повторного IV.
"""

from .cipher import (
    Grain128Cipher,
    construct,
    decrypt_bytes,
    encrypt_bytes,
    initialize,
    keystream_bytes,
)
from .errors import (
    Grain128Error,
    InvalidIVLength,
    InvalidKeyLength,
    NotInitialized,
    UnsupportedConfiguration,
)
from .manager import CryptoManager
from .config import get_cipher_key

__all__ = [
    'Grain128Cipher', 'construct', 'initialize', 'keystream_bytes',
    'encrypt_bytes', 'decrypt_bytes',
    'Grain128Error', 'InvalidKeyLength', 'InvalidIVLength',
    'UnsupportedConfiguration', 'NotInitialized',
    'CryptoManager', 'get_cipher_key',
]
