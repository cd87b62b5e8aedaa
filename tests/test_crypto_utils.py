"""
Test suite for aleo_agent.crypto_utils — low-level cryptographic helpers.

Covers:
  - Field arithmetic, division by zero, canonical string / byte encodings
  - hash_to_field / hash_psd2 determinism and input sensitivity
  - Seed-expanding randomness (ChaCha20) and its u64 bounds
  - AES-256-GCM authentication (tamper, associated data)
  - base58check and bech32 helpers
  - secp256k1 point encoding
"""

import unittest

from aleo_agent.crypto_utils import (
    FIELD_MODULUS,
    Field,
    aes_gcm_decrypt,
    aes_gcm_encrypt,
    b58check_decode,
    b58check_encode,
    base_mul,
    bech32_decode_bytes,
    bech32_encode_bytes,
    hash_psd2,
    hash_to_field,
    point_from_bytes,
    point_to_bytes,
    point_x,
    seeded_bytes,
)
from aleo_agent.errors import ParseError


class TestField(unittest.TestCase):

    def test_addition_wraps(self):
        self.assertEqual(Field(FIELD_MODULUS - 1) + Field(2), Field(1))

    def test_negative_values_reduce(self):
        self.assertEqual(Field(-1), Field(FIELD_MODULUS - 1))
        self.assertEqual(-Field(5) + Field(5), Field.zero())

    def test_multiplication_and_division(self):
        a, b = Field(123456789), Field(987654321)
        self.assertEqual((a * b) / b, a)
        self.assertEqual(Field(10) / Field(5), Field(2))

    def test_int_operands(self):
        self.assertEqual(Field(3) + 4, Field(7))
        self.assertEqual(2 * Field(21), Field(42))

    def test_division_by_zero(self):
        with self.assertRaises(ZeroDivisionError):
            Field(3) / Field.zero()

    def test_inverse(self):
        x = Field(777)
        self.assertEqual(x * x.inverse(), Field.one())

    def test_rejects_non_int(self):
        with self.assertRaises(TypeError):
            Field("5")
        with self.assertRaises(TypeError):
            Field(True)

    def test_string_form(self):
        self.assertEqual(str(Field(42)), "42field")
        self.assertEqual(Field.from_string(" 42field "), Field(42))
        self.assertEqual(repr(Field(7)), "Field(7)")

    def test_from_string_rejects_bad_literals(self):
        for bad in ("42", "42u64", "field", "-1field", f"{FIELD_MODULUS}field"):
            with self.assertRaises(ParseError):
                Field.from_string(bad)

    def test_bytes_roundtrip(self):
        x = Field(FIELD_MODULUS - 12345)
        self.assertEqual(len(x.to_bytes()), 32)
        self.assertEqual(Field.from_bytes(x.to_bytes()), x)

    def test_from_bytes_rejects_wrong_length_and_non_canonical(self):
        with self.assertRaises(ParseError):
            Field.from_bytes(b"\x01" * 31)
        with self.assertRaises(ParseError):
            Field.from_bytes(b"\xff" * 32)

    def test_hashable(self):
        self.assertEqual(len({Field(1), Field(1 + FIELD_MODULUS), Field(2)}), 2)

    def test_random_in_range(self):
        x = Field.random()
        self.assertTrue(0 <= x.value < FIELD_MODULUS)
        self.assertNotEqual(Field.random(), Field.random())


class TestHashing(unittest.TestCase):

    def test_hash_to_field_deterministic(self):
        self.assertEqual(hash_to_field("private_key"), hash_to_field("private_key"))
        self.assertEqual(hash_to_field("abc"), hash_to_field(b"abc"))

    def test_hash_to_field_separates_domains(self):
        self.assertNotEqual(hash_to_field("private_key"), hash_to_field("view_key"))

    def test_psd2_order_matters(self):
        a, b = Field(1), Field(2)
        self.assertNotEqual(hash_psd2([a, b]), hash_psd2([b, a]))

    def test_psd2_length_prefixed(self):
        self.assertNotEqual(hash_psd2([]), hash_psd2([Field.zero()]))
        self.assertNotEqual(hash_psd2([Field.zero()]), hash_psd2([Field.zero(), Field.zero()]))

    def test_psd2_deterministic(self):
        inputs = [Field(9), Field(8), Field(7)]
        self.assertEqual(hash_psd2(inputs), hash_psd2(list(inputs)))


class TestSeededBytes(unittest.TestCase):

    def test_deterministic(self):
        self.assertEqual(seeded_bytes(12345), seeded_bytes(12345))
        self.assertEqual(len(seeded_bytes(1, 100)), 100)

    def test_seeds_differ(self):
        self.assertNotEqual(seeded_bytes(1), seeded_bytes(2))

    def test_u64_bounds(self):
        seeded_bytes(0)
        seeded_bytes(2**64 - 1)
        for bad in (-1, 2**64, "1", 1.0, True):
            with self.assertRaises(ValueError):
                seeded_bytes(bad)


class TestAESGCM(unittest.TestCase):

    KEY = bytes(range(32))

    def test_roundtrip(self):
        ct, nonce, tag = aes_gcm_encrypt(self.KEY, b"secret", b"ad")
        self.assertEqual(aes_gcm_decrypt(self.KEY, nonce, ct, tag, b"ad"), b"secret")

    def test_fresh_nonce_per_call(self):
        ct1, n1, _ = aes_gcm_encrypt(self.KEY, b"secret")
        ct2, n2, _ = aes_gcm_encrypt(self.KEY, b"secret")
        self.assertNotEqual(n1, n2)
        self.assertNotEqual(ct1, ct2)

    def test_tampered_ciphertext(self):
        ct, nonce, tag = aes_gcm_encrypt(self.KEY, b"secret")
        tampered = bytes([ct[0] ^ 1]) + ct[1:]
        with self.assertRaises(ValueError):
            aes_gcm_decrypt(self.KEY, nonce, tampered, tag)

    def test_wrong_associated_data(self):
        ct, nonce, tag = aes_gcm_encrypt(self.KEY, b"secret", b"domain-a")
        with self.assertRaises(ValueError):
            aes_gcm_decrypt(self.KEY, nonce, ct, tag, b"domain-b")


class TestEncodings(unittest.TestCase):

    def test_b58check_roundtrip(self):
        text = b58check_encode("APrivateKey1", b"\x07" * 32)
        self.assertTrue(text.startswith("APrivateKey1"))
        self.assertEqual(b58check_decode("APrivateKey1", text, 32), b"\x07" * 32)

    def test_b58check_wrong_prefix(self):
        text = b58check_encode("AViewKey1", b"\x07" * 32)
        with self.assertRaises(ParseError):
            b58check_decode("APrivateKey1", text)

    def test_b58check_bad_checksum(self):
        text = b58check_encode("sign1", b"\x01\x02\x03\x04")
        last = "2" if text[-1] != "2" else "3"
        with self.assertRaises(ParseError):
            b58check_decode("sign1", text[:-1] + last)

    def test_b58check_length_enforced(self):
        text = b58check_encode("sign1", b"\x01" * 10)
        with self.assertRaises(ParseError):
            b58check_decode("sign1", text, 32)

    def test_bech32_roundtrip(self):
        payload = point_to_bytes(base_mul(Field(99)))
        text = bech32_encode_bytes("aleo", payload)
        self.assertTrue(text.startswith("aleo1"))
        self.assertEqual(bech32_decode_bytes("aleo", text), payload)

    def test_bech32_wrong_hrp(self):
        text = bech32_encode_bytes("other", b"\x02" * 33)
        with self.assertRaises(ParseError):
            bech32_decode_bytes("aleo", text)

    def test_bech32_garbage(self):
        with self.assertRaises(ParseError):
            bech32_decode_bytes("aleo", "aleo1notvalid")


class TestPoints(unittest.TestCase):

    def test_compressed_roundtrip(self):
        point = base_mul(Field(4242))
        data = point_to_bytes(point)
        self.assertEqual(len(data), 33)
        self.assertIn(data[0], (2, 3))
        self.assertEqual(point_x(point_from_bytes(data)), point_x(point))

    def test_base_mul_is_linear(self):
        self.assertEqual(
            point_to_bytes(base_mul(Field(2)) + base_mul(Field(3))),
            point_to_bytes(base_mul(Field(5))),
        )

    def test_malformed_point(self):
        with self.assertRaises(ParseError):
            point_from_bytes(b"\x05" * 33)
        with self.assertRaises(ParseError):
            point_from_bytes(b"\x02" * 10)


if __name__ == "__main__":
    unittest.main()
