import logging
import os
from typing import Optional

LIB_LOGGER_NAME = 'grain128'

# Метка обработчиков, установленных setup_logger
_OWN_HANDLER = '_grain128_handler'


def _install(logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    setattr(handler, _OWN_HANDLER, True)
    logger.addHandler(handler)


def setup_logger(name: str = LIB_LOGGER_NAME, log_file: Optional[str] = None, level: str = 'INFO') -> logging.Logger:
    """
    Настройка логгера библиотеки

    Args:
        name: Имя логгера
        log_file: Путь к файлу логов (опционально)
        level: Уровень логирования

    Returns:
        Настроенный логгер
    """

    # Создаем логгер
    logger = logging.getLogger(name)

    # Устанавливаем уровень
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    # Снимаем только обработчики, поставленные прошлым вызовом; чужие остаются
    for handler in [h for h in logger.handlers if getattr(h, _OWN_HANDLER, False)]:
        logger.removeHandler(handler)
        handler.close()

    # Формат сообщений
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Консольный обработчик
    console_handler = logging.StreamHandler()
    _install(logger, console_handler, formatter)

    # Файловый обработчик (если указан файл)
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        _install(logger, file_handler, formatter)

    return logger


def get_lib_logger() -> logging.Logger:
    """Получение основного логгера библиотеки"""
    return logging.getLogger(LIB_LOGGER_NAME)


def log_cipher_event(event: str, details: str = ""):
    """
    Логирование событий шифра

    Ключи, IV и ключевой поток сюда не передаются.

    Args:
        event: Тип события
        details: Дополнительные детали
    """
    logger = get_lib_logger()

    message = f"Cipher Event: {event}"
    if details:
        message += f" | Details: {details}"

    logger.info(message)


def log_error(error: Exception, context: str = ""):
    """
    Логирование ошибок

    Args:
        error: Исключение
        context: Контекст ошибки
    """
    logger = get_lib_logger()

    if context:
        logger.error("%s | Error: %s", context, error, exc_info=error)
    else:
        logger.error("Error: %s", error, exc_info=error)
