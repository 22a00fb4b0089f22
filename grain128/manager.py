"""
Менеджер шифрования Grain-128

Обеспечивает удобный интерфейс для шифрования/дешифрования строк
с автоматическим Base64 кодированием результата
"""

import base64

from .cipher import DEFAULT_IV_SIZE, REGISTER_SIZE, Grain128Cipher
from .config import config, get_cipher_key, get_iv_size
from .errors import Grain128Error
from .utils.logger import log_cipher_event, log_error, setup_logger


class CryptoManager:
    """
    Менеджер шифрования данных

    Хранит ключ и создаёт новый экземпляр шифра для каждого сообщения.
    IV передаёт вызывающий код: менеджер не генерирует и не отслеживает IV,
    повторное использование пары ключ/IV остаётся на его ответственности.
    """

    def __init__(self, key: bytes, ivsize: int = DEFAULT_IV_SIZE):
        """
        Инициализация менеджера шифрования

        Args:
            key: Ключ Grain-128 (16 байт)
            ivsize: Размер IV в битах
        """
        # Проверяем ключ и размеры сразу, а не при первом сообщении
        Grain128Cipher(key, REGISTER_SIZE, ivsize)

        self.key = bytes(key)
        self.ivsize = ivsize

    @classmethod
    def from_config(cls, config_name: str = 'default') -> 'CryptoManager':
        """
        Создание менеджера из конфигурации и переменных окружения

        Args:
            config_name: Имя конфигурации (development, production, testing)

        Returns:
            Настроенный менеджер
        """
        app_config = config.get(config_name, config['default'])

        setup_logger(level=app_config.LOG_LEVEL, log_file=app_config.LOG_FILE)

        ivsize = app_config.IV_SIZE or get_iv_size()

        manager = cls(get_cipher_key(app_config.KEY_SIZE), ivsize)
        log_cipher_event("manager created", f"config={config_name}, ivsize={ivsize}")
        return manager

    def _cipher(self, iv: bytes) -> Grain128Cipher:
        cipher = Grain128Cipher(self.key, REGISTER_SIZE, self.ivsize)
        cipher.initialize(iv)
        return cipher

    def keystream_hex(self, iv: bytes, n: int) -> str:
        """
        Первые n байт ключевого потока в виде hex-строки

        Args:
            iv: Вектор инициализации
            n: Количество байт

        Returns:
            Ключевой поток в hex
        """
        return self._cipher(iv).keystream_bytes(n).hex()

    def encrypt_text(self, text: str, iv: bytes) -> str:
        """
        Шифрование строки

        Args:
            text: Строка для шифрования
            iv: Вектор инициализации

        Returns:
            Зашифрованная строка в Base64
        """
        # IV проверяется и для пустой строки
        cipher = self._cipher(iv)

        if not text:
            return text

        try:
            # Конвертируем строку в байты
            plaintext = text.encode('utf-8')

            ciphertext = cipher.encrypt_bytes(plaintext)

            # Кодируем в Base64 для хранения в текстовом виде
            return base64.b64encode(ciphertext).decode('ascii')
        except Grain128Error:
            raise
        except Exception as e:
            log_error(e, "encrypt_text")
            raise RuntimeError(f"Ошибка шифрования строки: {e}") from e

    def decrypt_text(self, encrypted: str, iv: bytes) -> str:
        """
        Дешифрование строки

        Args:
            encrypted: Зашифрованная строка в Base64
            iv: Вектор инициализации, использованный при шифровании

        Returns:
            Расшифрованная строка
        """
        cipher = self._cipher(iv)

        if not encrypted:
            return encrypted

        try:
            # Декодируем из Base64
            ciphertext = base64.b64decode(encrypted.encode('ascii'), validate=True)

            plaintext = cipher.decrypt_bytes(ciphertext)

            # Конвертируем байты в строку
            return plaintext.decode('utf-8')
        except Grain128Error:
            raise
        except Exception as e:
            log_error(e, "decrypt_text")
            raise RuntimeError(f"Ошибка дешифрования строки: {e}") from e
