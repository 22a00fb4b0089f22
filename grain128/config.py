"""
Конфигурация библиотеки Grain-128

Размеры ключа/IV, логирование и ключ из переменных окружения
"""

import os

from dotenv import load_dotenv

from .cipher import DEFAULT_IV_SIZE, REGISTER_SIZE
from .errors import InvalidKeyLength, UnsupportedConfiguration
from .utils.logger import get_lib_logger

load_dotenv()

# Ключ для разработки (НЕ для продакшн!)
DEFAULT_DEV_KEY = bytes.fromhex('0123456789abcdef123456789abcdef0')


class Config:
    """Базовая конфигурация"""
    KEY_SIZE = REGISTER_SIZE
    # None - размер IV читается из GRAIN128_IV_SIZE при создании менеджера
    IV_SIZE = None

    # Настройки логирования
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FILE = os.environ.get('LOG_FILE') or None


class DevelopmentConfig(Config):
    """Конфигурация для разработки"""
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Конфигурация для продакшена"""


class TestingConfig(Config):
    """Конфигурация для тестирования"""
    TESTING = True
    IV_SIZE = DEFAULT_IV_SIZE
    LOG_LEVEL = 'WARNING'
    LOG_FILE = None


# Словарь конфигураций
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_cipher_key(keysize: int = REGISTER_SIZE) -> bytes:
    """
    Получение ключа шифрования из переменной окружения GRAIN128_KEY

    Ключ задаётся hex-строкой.

    Args:
        keysize: Размер ключа в битах

    Returns:
        Ключ шифрования
    """
    key_hex = os.environ.get('GRAIN128_KEY')

    if key_hex:
        try:
            key = bytes.fromhex(key_hex.strip())
        except ValueError as e:
            raise ValueError(f"GRAIN128_KEY должен быть hex-строкой: {e}") from e
    else:
        key = DEFAULT_DEV_KEY
        get_lib_logger().warning(
            "Используется ключ Grain-128 по умолчанию! "
            "Установите переменную окружения GRAIN128_KEY для продакшн"
        )

    if len(key) * 8 != keysize:
        raise InvalidKeyLength(
            f"Ключ Grain-128 должен быть {keysize // 8} байт, получено: {len(key)}"
        )

    return key


def get_iv_size(default: int = DEFAULT_IV_SIZE) -> int:
    """
    Получение размера IV из переменной окружения GRAIN128_IV_SIZE

    Args:
        default: Размер IV в битах, если переменная не задана

    Returns:
        Размер IV в битах
    """
    value = os.environ.get('GRAIN128_IV_SIZE')
    if not value:
        return default

    try:
        return int(value)
    except ValueError as e:
        raise UnsupportedConfiguration(
            f"GRAIN128_IV_SIZE должен быть целым числом бит, получено: {value!r}"
        ) from e
