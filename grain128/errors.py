"""
Исключения библиотеки Grain-128

Все ошибки фатальны: состояние шифра после них повторно не используется.
"""


class Grain128Error(Exception):
    """Базовое исключение библиотеки"""


class InvalidKeyLength(Grain128Error, ValueError):
    """Длина ключа не равна keysize / 8"""


class InvalidIVLength(Grain128Error, ValueError):
    """Длина IV не равна ivsize / 8"""


class UnsupportedConfiguration(Grain128Error, ValueError):
    """Неподдерживаемые размеры ключа или IV"""


class NotInitialized(Grain128Error, RuntimeError):
    """Ключевой поток запрошен до initialize()"""
