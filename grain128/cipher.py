"""
Реализация потокового шифра Grain-128

Grain-128 - потоковый шифр на двух сдвиговых регистрах по 128 бит:
NFSR (нелинейная обратная связь) и LFSR (линейная обратная связь)
Ключ: 128 бит, IV: 96 бит (допускается до 128 бит)
"""

import logging
from typing import Iterator

from .errors import (
    InvalidIVLength,
    InvalidKeyLength,
    NotInitialized,
    UnsupportedConfiguration,
)

logger = logging.getLogger(__name__)

# Позиции отводов заданы только для 128-битных регистров
REGISTER_SIZE = 128
INIT_CLOCKS = 256
DEFAULT_IV_SIZE = 96

_TOP = REGISTER_SIZE - 1


class Grain128Cipher:
    """
    Реализация потокового шифра Grain-128

    Регистры хранятся в целых числах: ячейка i регистра - это бит i числа.
    Сдвиг регистра на одну ячейку - сдвиг числа вправо на один бит,
    новый бит обратной связи записывается в ячейку 127.

    Экземпляр не потокобезопасен: каждый такт зависит от предыдущего.
    """

    def __init__(self, key: bytes, keysize: int = REGISTER_SIZE, ivsize: int = DEFAULT_IV_SIZE):
        """
        Создание шифра с заданным ключом

        Регистры обнуляются, ключ и IV в них ещё не загружены.

        Args:
            key: Ключ шифрования (keysize / 8 байт)
            keysize: Размер ключа в битах (только 128)
            ivsize: Размер IV в битах (кратен 8, не больше keysize)

        Raises:
            UnsupportedConfiguration: Неподдерживаемые размеры
            InvalidKeyLength: Длина ключа не равна keysize / 8
        """
        if keysize % 8 or ivsize % 8:
            raise UnsupportedConfiguration(
                f"Размеры ключа и IV должны быть кратны 8 битам, получено: {keysize}/{ivsize}"
            )

        if keysize != REGISTER_SIZE:
            raise UnsupportedConfiguration(
                f"Поддерживается только ключ {REGISTER_SIZE} бит, получено: {keysize}"
            )

        if not 0 < ivsize <= keysize:
            raise UnsupportedConfiguration(
                f"Размер IV должен быть от 8 до {keysize} бит, получено: {ivsize}"
            )

        # memoryview не принимает int и str, поэтому Grain128Cipher(16) не даст нулевой ключ
        key = bytes(memoryview(key))
        if len(key) * 8 != keysize:
            raise InvalidKeyLength(
                f"Ключ должен быть {keysize // 8} байт, получено: {len(key)}"
            )

        self.key = key
        self.keysize = keysize
        self.ivsize = ivsize

        self.nfsr = 0
        self.lfsr = 0
        self._initialized = False

        logger.debug("Создан шифр Grain-128 (keysize=%d, ivsize=%d)", keysize, ivsize)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(keysize={self.keysize}, "
            f"ivsize={self.ivsize}, initialized={self._initialized})"
        )

    @property
    def initialized(self) -> bool:
        """Завершена ли инициализация (можно получать ключевой поток)"""
        return self._initialized

    def initialize(self, iv: bytes) -> None:
        """
        Загрузка ключа и IV в регистры и 256 холостых тактов

        Бит j байта i ключа попадает в ячейку NFSR i*8 + j,
        бит j байта i IV - в ячейку LFSR i*8 + j.
        Ячейки LFSR, не покрытые IV, заполняются единицами.
        Выходные биты холостых тактов наружу не выдаются,
        а добавляются (XOR) в ячейку 127 обоих регистров.

        Повторный вызов перезапускает ключевой поток с сохранённым ключом.

        Args:
            iv: Вектор инициализации (ivsize / 8 байт)

        Raises:
            InvalidIVLength: Длина IV не равна ivsize / 8
        """
        iv = bytes(memoryview(iv))
        if len(iv) * 8 != self.ivsize:
            raise InvalidIVLength(
                f"IV должен быть {self.ivsize // 8} байт, получено: {len(iv)}"
            )

        self._initialized = False

        padding = ((1 << self.keysize) - 1) ^ ((1 << self.ivsize) - 1)
        self.nfsr = int.from_bytes(self.key, 'little')
        self.lfsr = int.from_bytes(iv, 'little') | padding

        for _ in range(INIT_CLOCKS):
            outbit = self._clock()
            self.nfsr ^= outbit << _TOP
            self.lfsr ^= outbit << _TOP

        self._initialized = True
        logger.debug("Инициализация Grain-128 завершена (%d тактов)", INIT_CLOCKS)

    def _clock(self) -> int:
        """
        Один такт шифра

        Все отводы читаются до сдвига регистров.

        Returns:
            Выходной бит такта
        """
        n = self.nfsr
        s = self.lfsr

        outbit = (
            (n >> 2) ^ (n >> 15) ^ (n >> 36) ^ (n >> 45) ^ (n >> 64) ^ (n >> 73) ^ (n >> 89)
            ^ (s >> 93)
            ^ ((n >> 12) & (s >> 8))
            ^ ((s >> 13) & (s >> 20))
            ^ ((n >> 95) & (s >> 42))
            ^ ((s >> 60) & (s >> 79))
            ^ ((n >> 12) & (n >> 95) & (s >> 95))
        ) & 1

        # Линейный член NFSR берётся из LFSR[0]
        n_bit = (
            s ^ n ^ (n >> 26) ^ (n >> 56) ^ (n >> 91) ^ (n >> 96)
            ^ ((n >> 3) & (n >> 67))
            ^ ((n >> 11) & (n >> 13))
            ^ ((n >> 17) & (n >> 18))
            ^ ((n >> 27) & (n >> 59))
            ^ ((n >> 40) & (n >> 48))
            ^ ((n >> 61) & (n >> 65))
            ^ ((n >> 68) & (n >> 84))
        ) & 1

        s_bit = (s ^ (s >> 7) ^ (s >> 38) ^ (s >> 70) ^ (s >> 81) ^ (s >> 96)) & 1

        self.nfsr = (n >> 1) | (n_bit << _TOP)
        self.lfsr = (s >> 1) | (s_bit << _TOP)

        return outbit

    def _next_byte(self) -> int:
        """
        Восемь тактов шифра, упакованные в байт

        Первый сгенерированный бит - младший бит байта.

        Returns:
            Байт ключевого потока
        """
        byte = 0
        for j in range(8):
            byte |= self._clock() << j
        return byte

    def _check_initialized(self) -> None:
        if not self._initialized:
            raise NotInitialized("Шифр не инициализирован: сначала вызовите initialize(iv)")

    def iter_keystream(self) -> Iterator[int]:
        """
        Генератор ключевого потока

        Генератор разделяет состояние с шифром: каждый полученный байт
        сдвигает общий ключевой поток, перезапуска нет.

        Returns:
            Бесконечный итератор байт ключевого потока
        """
        self._check_initialized()
        return self._keystream()

    def _keystream(self) -> Iterator[int]:
        """
        Бесконечный генератор ключевого потока

        Yields:
            Байты ключевого потока
        """
        while True:
            yield self._next_byte()

    def keystream_bytes(self, n: int) -> bytes:
        """
        Получение n байт ключевого потока

        Args:
            n: Количество байт

        Returns:
            Байты ключевого потока
        """
        self._check_initialized()
        if n < 0:
            raise ValueError(f"Количество байт не может быть отрицательным: {n}")

        return bytes(self._next_byte() for _ in range(n))

    def encrypt_bytes(self, plaintext: bytes) -> bytes:
        """
        Шифрование данных

        Args:
            plaintext: Данные для шифрования

        Returns:
            Зашифрованные данные той же длины
        """
        self._check_initialized()

        # Тип данных проверяется до первого такта
        plaintext = bytes(memoryview(plaintext))
        result = bytearray()

        for byte in plaintext:
            # XOR с ключевым потоком
            result.append(byte ^ self._next_byte())

        return bytes(result)

    def decrypt_bytes(self, ciphertext: bytes) -> bytes:
        """
        Дешифрование данных

        Для потокового шифра шифрование и дешифрование - одна и та же операция (XOR)

        Args:
            ciphertext: Зашифрованные данные

        Returns:
            Расшифрованные данные
        """
        return self.encrypt_bytes(ciphertext)

    def copy(self) -> 'Grain128Cipher':
        """Независимая копия шифра в текущем состоянии"""
        clone = self.__class__.__new__(self.__class__)
        # Все атрибуты неизменяемые (int, bytes, bool)
        clone.__dict__.update(self.__dict__)
        return clone

    __copy__ = copy


def construct(key: bytes, keysize: int = REGISTER_SIZE, ivsize: int = DEFAULT_IV_SIZE) -> Grain128Cipher:
    """Создание шифра без загрузки ключа в регистры"""
    return Grain128Cipher(key, keysize, ivsize)


def initialize(state: Grain128Cipher, iv: bytes) -> None:
    """
    Загрузка ключа и IV и холостые такты

    Args:
        state: Шифр, созданный construct()
        iv: Вектор инициализации
    """
    state.initialize(iv)


def keystream_bytes(state: Grain128Cipher, n: int) -> bytes:
    """Получение n байт ключевого потока из state"""
    return state.keystream_bytes(n)


def encrypt_bytes(state: Grain128Cipher, plaintext: bytes) -> bytes:
    """Шифрование данных ключевым потоком state"""
    return state.encrypt_bytes(plaintext)


def decrypt_bytes(state: Grain128Cipher, ciphertext: bytes) -> bytes:
    """Дешифрование данных ключевым потоком state"""
    return state.decrypt_bytes(ciphertext)
