"""
Unit-тесты для библиотеки Grain-128

Тестирование Grain128Cipher, конфигурации и CryptoManager
"""

import base64
import copy
import logging
import os
import tempfile
import unittest
from unittest import mock

from . import cipher as cipher_module
from .cipher import Grain128Cipher, INIT_CLOCKS
from .config import DEFAULT_DEV_KEY, config, get_cipher_key, get_iv_size
from .errors import (
    Grain128Error,
    InvalidIVLength,
    InvalidKeyLength,
    NotInitialized,
    UnsupportedConfiguration,
)
from .manager import CryptoManager
from .utils.logger import setup_logger


# (ключ, IV, ожидаемый ключевой поток), ivsize = 96
KEYSTREAM_VECTORS = [
    (
        '00000000000000000000000000000000',
        '000000000000000000000000',
        'f09b7bf7d7f6b5c2de2ffc73ac21397f',
    ),
    (
        '0123456789abcdef123456789abcdef0',
        '0123456789abcdef12345678',
        'afb5babfa8de896b4b9c6acaf7c4fbfd',
    ),
]

# (ключ, открытый текст, шифртекст), ivsize = 128, IV нулевой
ENCRYPT_VECTORS = [
    (
        'd95ebe3562cadd429867b8cc7cd7b7e8',
        '00000000000000000000000000000000',
        '60b178b8e203df01d08ad1f38be25c82',
    ),
    (
        '831fad16a6bebb9d305eb82c680b88f2',
        '00000000000000000000000000000000',
        '6ab6530a69c187dd6131f1432530260c',
    ),
    (
        '5146d270d4014fe53a203050cf0acb53',
        '505b968998ed76050d0b9ac884043e0d',
        '95518e0d71badcedff6632e19366dbca',
    ),
    (
        'ffb202f567b27327c33d4c179510d03f',
        '4f9e44aa744945f2656ffb159f567f61',
        'f0b4c6480ab7aede6f623b40f11bf983',
    ),
    (
        'fbdc92620a074e89ae08b39f88d89c0c',
        '00000000000000000000000000000000',
        '11f93bf57bc33e80a8eeaf4024792c7d',
    ),
]

KEY = bytes.fromhex('0123456789abcdef123456789abcdef0')
IV = bytes.fromhex('0123456789abcdef12345678')


def reference_model(key: bytes, iv: bytes, ivsize: int, n: int):
    """
    Побитовая модель Grain-128 на списках ячеек

    Returns:
        Кортеж (выходные биты холостых тактов, n байт ключевого потока)
    """
    nfsr = [0] * 128
    lfsr = [0] * 128

    for i in range(16):
        for j in range(8):
            nfsr[i * 8 + j] = (key[i] >> j) & 1
            lfsr[i * 8 + j] = (iv[i] >> j) & 1 if i < ivsize // 8 else 1

    def clock():
        N, L = nfsr, lfsr
        outbit = (N[2] ^ N[15] ^ N[36] ^ N[45] ^ N[64] ^ N[73] ^ N[89] ^ L[93]
                  ^ (N[12] & L[8]) ^ (L[13] & L[20]) ^ (N[95] & L[42])
                  ^ (L[60] & L[79]) ^ (N[12] & N[95] & L[95]))
        n_bit = (L[0] ^ N[0] ^ N[26] ^ N[56] ^ N[91] ^ N[96]
                 ^ (N[3] & N[67]) ^ (N[11] & N[13]) ^ (N[17] & N[18])
                 ^ (N[27] & N[59]) ^ (N[40] & N[48]) ^ (N[61] & N[65])
                 ^ (N[68] & N[84]))
        l_bit = L[0] ^ L[7] ^ L[38] ^ L[70] ^ L[81] ^ L[96]
        for i in range(1, 128):
            N[i - 1] = N[i]
            L[i - 1] = L[i]
        N[127] = n_bit
        L[127] = l_bit
        return outbit

    warmup = []
    for _ in range(256):
        outbit = clock()
        warmup.append(outbit)
        nfsr[127] ^= outbit
        lfsr[127] ^= outbit

    stream = bytearray()
    for _ in range(n):
        byte = 0
        for j in range(8):
            byte |= clock() << j
        stream.append(byte)

    return warmup, bytes(stream)


class TestGrain128KnownAnswers(unittest.TestCase):
    """Тесты на эталонных векторах"""

    def test_keystream_vectors(self):
        """Тест ключевого потока на эталонных векторах (IV 96 бит)"""
        for key, iv, expected in KEYSTREAM_VECTORS:
            with self.subTest(key=key):
                cipher = Grain128Cipher(bytes.fromhex(key), 128, 96)
                cipher.initialize(bytes.fromhex(iv))
                self.assertEqual(cipher.keystream_bytes(16).hex(), expected)

    def test_encrypt_vectors(self):
        """Тест шифрования на эталонных векторах (IV 128 бит)"""
        for key, plaintext, expected in ENCRYPT_VECTORS:
            with self.subTest(key=key):
                cipher = Grain128Cipher(bytes.fromhex(key), 128, 128)
                cipher.initialize(bytes(16))
                ciphertext = cipher.encrypt_bytes(bytes.fromhex(plaintext))
                self.assertEqual(ciphertext.hex(), expected)

    def test_decrypt_vectors(self):
        """Тест дешифрования на эталонных векторах"""
        for key, plaintext, ciphertext in ENCRYPT_VECTORS:
            with self.subTest(key=key):
                cipher = Grain128Cipher(bytes.fromhex(key), 128, 128)
                cipher.initialize(bytes(16))
                decrypted = cipher.decrypt_bytes(bytes.fromhex(ciphertext))
                self.assertEqual(decrypted.hex(), plaintext)

    def test_module_functions(self):
        """Тест функционального интерфейса"""
        key, iv, expected = KEYSTREAM_VECTORS[1]
        state = cipher_module.construct(bytes.fromhex(key), 128, 96)
        cipher_module.initialize(state, bytes.fromhex(iv))
        self.assertEqual(cipher_module.keystream_bytes(state, 16).hex(), expected)

        state = cipher_module.construct(bytes.fromhex(key), 128, 96)
        cipher_module.initialize(state, bytes.fromhex(iv))
        ciphertext = cipher_module.encrypt_bytes(state, b'attack at dawn')

        state = cipher_module.construct(bytes.fromhex(key), 128, 96)
        cipher_module.initialize(state, bytes.fromhex(iv))
        self.assertEqual(cipher_module.decrypt_bytes(state, ciphertext), b'attack at dawn')


class TestGrain128Model(unittest.TestCase):
    """Сравнение с побитовой моделью регистров"""

    def test_matches_reference_model_iv96(self):
        """Тест совпадения с моделью на списках ячеек (IV 96 бит)"""
        key = bytes(range(16))
        iv = bytes(range(100, 112))
        _, expected = reference_model(key, iv, 96, 40)

        cipher = Grain128Cipher(key, 128, 96)
        cipher.initialize(iv)
        self.assertEqual(cipher.keystream_bytes(40), expected)

    def test_matches_reference_model_iv128(self):
        """Тест совпадения с моделью на списках ячеек (IV 128 бит)"""
        key = bytes.fromhex('fbdc92620a074e89ae08b39f88d89c0c')
        iv = bytes.fromhex('4f9e44aa744945f2656ffb159f567f61')
        _, expected = reference_model(key, iv, 128, 40)

        cipher = Grain128Cipher(key, 128, 128)
        cipher.initialize(iv)
        self.assertEqual(cipher.keystream_bytes(40), expected)

    def test_warmup_bits_not_exposed(self):
        """Тест что биты холостых тактов не попадают в ключевой поток"""
        self.assertEqual(INIT_CLOCKS, 256)

        warmup, expected = reference_model(KEY, IV, 96, 32)
        self.assertEqual(len(warmup), 256)

        warmup_bytes = bytes(
            sum(bit << j for j, bit in enumerate(warmup[i:i + 8]))
            for i in range(0, 256, 8)
        )

        cipher = Grain128Cipher(KEY, 128, 96)
        cipher.initialize(IV)
        keystream = cipher.keystream_bytes(32)
        self.assertEqual(keystream, expected)
        self.assertNotEqual(keystream, warmup_bytes)

    def test_registers_hold_bits_after_initialize(self):
        """Тест что регистры остаются 128-битными"""
        cipher = Grain128Cipher(KEY)
        cipher.initialize(IV)
        cipher.keystream_bytes(64)
        self.assertLess(cipher.nfsr, 1 << 128)
        self.assertLess(cipher.lfsr, 1 << 128)
        self.assertGreaterEqual(cipher.nfsr, 0)
        self.assertGreaterEqual(cipher.lfsr, 0)


class TestGrain128Properties(unittest.TestCase):
    """Тесты свойств шифра"""

    def new_cipher(self, iv: bytes = IV) -> Grain128Cipher:
        cipher = Grain128Cipher(KEY)
        cipher.initialize(iv)
        return cipher

    def test_deterministic_keystream(self):
        """Тест детерминированности ключевого потока"""
        self.assertEqual(self.new_cipher().keystream_bytes(100), self.new_cipher().keystream_bytes(100))

    def test_keystream_is_continuous(self):
        """Тест что последовательные вызовы продолжают один поток"""
        whole = self.new_cipher().keystream_bytes(48)

        cipher = self.new_cipher()
        parts = cipher.keystream_bytes(5) + cipher.keystream_bytes(0) + cipher.keystream_bytes(43)
        self.assertEqual(whole, parts)

    def test_encrypt_zeros_is_keystream(self):
        """Тест что шифрование нулей даёт ключевой поток"""
        self.assertEqual(self.new_cipher().encrypt_bytes(bytes(64)), self.new_cipher().keystream_bytes(64))

    def test_encrypt_decrypt(self):
        """Тест шифрования/дешифрования"""
        plaintext = 'Тестовый текст 测试 🎉'.encode('utf-8')
        ciphertext = self.new_cipher().encrypt_bytes(plaintext)
        self.assertEqual(len(ciphertext), len(plaintext))
        self.assertNotEqual(ciphertext, plaintext)
        self.assertEqual(self.new_cipher().decrypt_bytes(ciphertext), plaintext)

    def test_encrypt_empty(self):
        """Тест шифрования пустых данных"""
        self.assertEqual(self.new_cipher().encrypt_bytes(b''), b'')

    def test_encrypt_bytearray_and_memoryview(self):
        """Тест шифрования bytearray и memoryview"""
        plaintext = b'bytes-like input'
        expected = self.new_cipher().encrypt_bytes(plaintext)
        self.assertEqual(self.new_cipher().encrypt_bytes(bytearray(plaintext)), expected)
        self.assertEqual(self.new_cipher().encrypt_bytes(memoryview(plaintext)), expected)

    def test_iter_keystream(self):
        """Тест генератора ключевого потока"""
        cipher = self.new_cipher()
        stream = cipher.iter_keystream()
        head = bytes(next(stream) for _ in range(10))
        tail = cipher.keystream_bytes(6)
        self.assertEqual(head + tail, self.new_cipher().keystream_bytes(16))

    def test_reinitialize_restarts_keystream(self):
        """Тест что повторная инициализация перезапускает поток"""
        cipher = self.new_cipher()
        first = cipher.keystream_bytes(16)
        cipher.initialize(IV)
        self.assertEqual(cipher.keystream_bytes(16), first)

    def test_iv_bit_flip_changes_output(self):
        """Тест что изменение одного бита IV меняет ключевой поток"""
        flipped = bytearray(IV)
        flipped[0] ^= 0x01
        self.assertNotEqual(self.new_cipher().keystream_bytes(16), self.new_cipher(bytes(flipped)).keystream_bytes(16))

    def test_iv_high_bit_flip_changes_output(self):
        """Тест изменения старшего бита последнего байта IV"""
        flipped = bytearray(IV)
        flipped[-1] ^= 0x80
        self.assertNotEqual(self.new_cipher().keystream_bytes(16), self.new_cipher(bytes(flipped)).keystream_bytes(16))

    def test_iv_bit_flip_changes_first_byte(self):
        """Тест что изменение одного бита IV обычно меняет первый байт потока"""
        first = self.new_cipher().keystream_bytes(1)[0]

        changed = 0
        for bit in range(96):
            flipped = bytearray(IV)
            flipped[bit // 8] ^= 1 << (bit % 8)
            if self.new_cipher(bytes(flipped)).keystream_bytes(1)[0] != first:
                changed += 1

        # Случайное совпадение байта возможно примерно в 1 случае из 256
        self.assertGreaterEqual(changed, 90)

    def test_rejected_input_keeps_keystream(self):
        """Тест что отклонённые данные не сдвигают ключевой поток"""
        cipher = self.new_cipher()
        with self.assertRaises(TypeError):
            cipher.encrypt_bytes('ab')
        with self.assertRaises(TypeError):
            cipher.decrypt_bytes(12345)
        self.assertEqual(cipher.keystream_bytes(4), self.new_cipher().keystream_bytes(4))

    def test_different_keys_different_output(self):
        """Тест что разные ключи дают разный результат"""
        cipher1 = Grain128Cipher(bytes(16))
        cipher1.initialize(IV)
        cipher2 = Grain128Cipher(bytes(15) + b'\x01')
        cipher2.initialize(IV)
        self.assertNotEqual(cipher1.keystream_bytes(16), cipher2.keystream_bytes(16))

    def test_key_is_copied(self):
        """Тест что ключ копируется при создании"""
        key = bytearray(KEY)
        cipher = Grain128Cipher(key)
        key[0] ^= 0xFF
        cipher.initialize(IV)
        self.assertEqual(cipher.keystream_bytes(16).hex(), KEYSTREAM_VECTORS[1][2])

    def test_copy_is_independent(self):
        """Тест независимости копии шифра"""
        cipher = self.new_cipher()
        cipher.keystream_bytes(3)
        clone = cipher.copy()

        self.assertEqual(cipher.keystream_bytes(20), clone.keystream_bytes(20))
        cipher.keystream_bytes(1)
        self.assertNotEqual(cipher.nfsr, clone.nfsr)

        self.assertTrue(copy.copy(cipher).initialized)

    def test_repr_hides_key(self):
        """Тест что repr не содержит ключ"""
        cipher = self.new_cipher()
        text = repr(cipher)
        self.assertIn('keysize=128', text)
        self.assertNotIn(KEY.hex(), text)


class TestGrain128Errors(unittest.TestCase):
    """Тесты ошибок"""

    def test_invalid_key_length(self):
        """Тест ключа неверной длины"""
        for key in (b'', bytes(15), bytes(17)):
            with self.subTest(length=len(key)):
                with self.assertRaises(InvalidKeyLength):
                    Grain128Cipher(key, 128, 96)

    def test_key_must_be_bytes(self):
        """Тест что int не превращается в нулевой ключ"""
        with self.assertRaises(TypeError):
            Grain128Cipher(16)
        with self.assertRaises(TypeError):
            Grain128Cipher('0123456789abcdef')

    def test_unsupported_keysize(self):
        """Тест неподдерживаемого размера ключа"""
        with self.assertRaises(UnsupportedConfiguration):
            Grain128Cipher(bytes(10), 80, 64)
        with self.assertRaises(UnsupportedConfiguration):
            Grain128Cipher(bytes(32), 256, 96)

    def test_unsupported_ivsize(self):
        """Тест неподдерживаемого размера IV"""
        for ivsize in (0, 100, 136):
            with self.subTest(ivsize=ivsize):
                with self.assertRaises(UnsupportedConfiguration):
                    Grain128Cipher(KEY, 128, ivsize)

    def test_invalid_iv_length(self):
        """Тест IV неверной длины"""
        cipher = Grain128Cipher(KEY, 128, 96)
        for iv in (bytes(11), bytes(13), bytes(16)):
            with self.subTest(length=len(iv)):
                with self.assertRaises(InvalidIVLength):
                    cipher.initialize(iv)
        self.assertFalse(cipher.initialized)
        self.assertEqual(cipher.nfsr, 0)
        self.assertEqual(cipher.lfsr, 0)

    def test_not_initialized(self):
        """Тест запроса потока до инициализации"""
        cipher = Grain128Cipher(KEY)
        self.assertFalse(cipher.initialized)
        with self.assertRaises(NotInitialized):
            cipher.keystream_bytes(1)
        with self.assertRaises(NotInitialized):
            cipher.encrypt_bytes(b'data')
        with self.assertRaises(NotInitialized):
            cipher.decrypt_bytes(b'data')
        with self.assertRaises(NotInitialized):
            cipher.iter_keystream()

    def test_negative_length(self):
        """Тест отрицательной длины ключевого потока"""
        cipher = Grain128Cipher(KEY)
        cipher.initialize(IV)
        with self.assertRaises(ValueError):
            cipher.keystream_bytes(-1)

    def test_error_hierarchy(self):
        """Тест иерархии исключений"""
        for error in (InvalidKeyLength, InvalidIVLength, UnsupportedConfiguration):
            self.assertTrue(issubclass(error, Grain128Error))
            self.assertTrue(issubclass(error, ValueError))
        self.assertTrue(issubclass(NotInitialized, RuntimeError))


class TestConfig(unittest.TestCase):
    """Тесты конфигурации"""

    def test_testing_config(self):
        """Тест тестовой конфигурации"""
        testing = config['testing']
        self.assertTrue(testing.TESTING)
        self.assertEqual(testing.KEY_SIZE, 128)
        self.assertEqual(testing.IV_SIZE, 96)
        self.assertIn('default', config)

    def test_key_from_env(self):
        """Тест ключа из переменной окружения"""
        with mock.patch.dict(os.environ, {'GRAIN128_KEY': 'd95ebe3562cadd429867b8cc7cd7b7e8'}):
            self.assertEqual(get_cipher_key(), bytes.fromhex('d95ebe3562cadd429867b8cc7cd7b7e8'))

    def test_default_key_warns(self):
        """Тест ключа по умолчанию"""
        with mock.patch.dict(os.environ):
            os.environ.pop('GRAIN128_KEY', None)
            with self.assertLogs('grain128', level='WARNING'):
                self.assertEqual(get_cipher_key(), DEFAULT_DEV_KEY)

    def test_invalid_hex_key(self):
        """Тест некорректной hex-строки"""
        with mock.patch.dict(os.environ, {'GRAIN128_KEY': 'not-a-hex-key'}):
            with self.assertRaises(ValueError):
                get_cipher_key()

    def test_wrong_key_length_from_env(self):
        """Тест ключа неверной длины из окружения"""
        with mock.patch.dict(os.environ, {'GRAIN128_KEY': '0011223344'}):
            with self.assertRaises(InvalidKeyLength):
                get_cipher_key()

    def test_iv_size_from_env(self):
        """Тест размера IV из переменной окружения"""
        with mock.patch.dict(os.environ, {'GRAIN128_IV_SIZE': '128'}):
            self.assertEqual(get_iv_size(), 128)
        with mock.patch.dict(os.environ):
            os.environ.pop('GRAIN128_IV_SIZE', None)
            self.assertEqual(get_iv_size(), 96)

    def test_invalid_iv_size_from_env(self):
        """Тест некорректного размера IV в окружении"""
        with mock.patch.dict(os.environ, {'GRAIN128_IV_SIZE': 'ninety-six'}):
            with self.assertRaises(UnsupportedConfiguration):
                get_iv_size()


class TestLogger(unittest.TestCase):
    """Тесты настройки логгера"""

    def setUp(self):
        self.logger = logging.getLogger('grain128.tests.setup')
        self.foreign = logging.NullHandler()
        self.logger.addHandler(self.foreign)

    def tearDown(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def test_setup_keeps_foreign_handlers(self):
        """Тест что setup_logger не снимает чужие обработчики"""
        setup_logger(self.logger.name, level='ERROR')
        setup_logger(self.logger.name, level='ERROR')

        self.assertIn(self.foreign, self.logger.handlers)
        # Повторный вызов заменяет свой консольный обработчик, а не добавляет второй
        self.assertEqual(len(self.logger.handlers), 2)
        self.assertEqual(self.logger.level, logging.ERROR)

    def test_setup_with_log_file(self):
        """Тест файлового обработчика"""
        with tempfile.TemporaryDirectory() as tmp:
            log_file = os.path.join(tmp, 'logs', 'grain128.log')
            setup_logger(self.logger.name, log_file=log_file, level='INFO')
            self.logger.info("hello")
            self.tearDown()
            with open(log_file, encoding='utf-8') as f:
                self.assertIn('hello', f.read())


class TestCryptoManager(unittest.TestCase):
    """Тесты для CryptoManager"""

    def setUp(self):
        """Инициализация перед каждым тестом"""
        self.manager = CryptoManager(KEY, 96)

    def test_encrypt_decrypt_text(self):
        """Тест шифрования/дешифрования строки"""
        text = 'пользователь_123'
        encrypted = self.manager.encrypt_text(text, IV)
        self.assertEqual(self.manager.decrypt_text(encrypted, IV), text)

    def test_encrypt_empty_text(self):
        """Тест шифрования пустой строки"""
        self.assertEqual(self.manager.encrypt_text('', IV), '')
        self.assertEqual(self.manager.decrypt_text('', IV), '')

    def test_encrypted_is_base64(self):
        """Тест что зашифрованные данные в Base64 формате"""
        encrypted = self.manager.encrypt_text('test_user', IV)
        self.assertTrue(encrypted.isascii())
        self.assertEqual(len(base64.b64decode(encrypted)), len('test_user'))

    def test_encrypt_text_vector(self):
        """Тест шифрования строки на эталонном векторе"""
        key, _, expected = ENCRYPT_VECTORS[0]
        manager = CryptoManager(bytes.fromhex(key), 128)
        encrypted = manager.encrypt_text('\x00' * 16, bytes(16))
        self.assertEqual(base64.b64decode(encrypted).hex(), expected)

    def test_keystream_hex(self):
        """Тест ключевого потока в hex"""
        key, iv, expected = KEYSTREAM_VECTORS[0]
        manager = CryptoManager(bytes.fromhex(key))
        self.assertEqual(manager.keystream_hex(bytes.fromhex(iv), 16), expected)

    def test_same_iv_deterministic(self):
        """Тест детерминированности при одинаковом IV"""
        self.assertEqual(self.manager.encrypt_text('SERIAL123', IV), self.manager.encrypt_text('SERIAL123', IV))

    def test_different_iv_different_output(self):
        """Тест что разные IV дают разный результат"""
        other_iv = bytes(12)
        self.assertNotEqual(
            self.manager.encrypt_text('SERIAL123', IV),
            self.manager.encrypt_text('SERIAL123', other_iv)
        )

    def test_invalid_key(self):
        """Тест некорректного ключа"""
        with self.assertRaises(InvalidKeyLength):
            CryptoManager(b'short')

    def test_invalid_iv_propagates(self):
        """Тест что ошибки шифра не оборачиваются"""
        with self.assertRaises(InvalidIVLength):
            self.manager.encrypt_text('data', bytes(5))

    def test_empty_text_checks_iv(self):
        """Тест что пустая строка не отменяет проверку IV"""
        with self.assertRaises(InvalidIVLength):
            self.manager.encrypt_text('', bytes(5))
        with self.assertRaises(InvalidIVLength):
            self.manager.decrypt_text('', bytes(5))

    def test_invalid_base64(self):
        """Тест некорректных данных для дешифрования"""
        with self.assertLogs('grain128', level='ERROR'):
            with self.assertRaises(RuntimeError):
                self.manager.decrypt_text('this is not base64!', IV)

    def test_from_config(self):
        """Тест создания менеджера из конфигурации"""
        with mock.patch.dict(os.environ, {'GRAIN128_KEY': KEY.hex()}):
            manager = CryptoManager.from_config('testing')
        self.assertEqual(manager.key, KEY)
        self.assertEqual(manager.ivsize, 96)
        self.assertEqual(manager.keystream_hex(IV, 16), KEYSTREAM_VECTORS[1][2])

    def test_from_config_reads_iv_size(self):
        """Тест размера IV из окружения при создании менеджера"""
        env = {'GRAIN128_KEY': KEY.hex(), 'GRAIN128_IV_SIZE': '128'}
        with mock.patch.dict(os.environ, env):
            manager = CryptoManager.from_config('production')
        self.assertEqual(manager.ivsize, 128)
        with self.assertRaises(InvalidIVLength):
            manager.keystream_hex(IV, 1)


def run_tests():
    """Запуск всех тестов"""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    for case in (TestGrain128KnownAnswers, TestGrain128Model, TestGrain128Properties,
                 TestGrain128Errors, TestConfig, TestLogger, TestCryptoManager):
        suite.addTests(loader.loadTestsFromTestCase(case))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == '__main__':
    success = run_tests()
    exit(0 if success else 1)
