"""
Symmetric cipher shared with the BaaS backend.

AES-CBC with PKCS#7 padding. Key and IV are the UTF-8 bytes of configured
strings and the IV is fixed, so equal plaintexts give equal ciphertexts.
Ciphertext travels as standard Base64 text.
"""

import base64
import binascii
from typing import Union

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from shared.errors import DecodeError

_BLOCK_BITS = 128
_BLOCK_BYTES = _BLOCK_BITS // 8


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


class CipherCodec:
    """Encrypt and decrypt UTF-8 text for the wire."""

    def __init__(self, key: Union[str, bytes], iv: Union[str, bytes]):
        key_bytes = _as_bytes(key)
        iv_bytes = _as_bytes(iv)
        if len(key_bytes) not in (16, 24, 32):
            raise ValueError(f"AES key must be 16, 24 or 32 bytes, got {len(key_bytes)}")
        if len(iv_bytes) != _BLOCK_BYTES:
            raise ValueError(f"AES-CBC IV must be {_BLOCK_BYTES} bytes, got {len(iv_bytes)}")

        self._key = key_bytes
        self._iv = iv_bytes

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt text.

        Args:
            plaintext: Text to encrypt (any length, including empty)

        Returns:
            Base64 ciphertext
        """
        padder = padding.PKCS7(_BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = self._cipher().encryptor()
        encrypted = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(encrypted).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt text produced by encrypt() or by the backend.

        Args:
            ciphertext: Base64 ciphertext; surrounding whitespace or JSON
                string quotes are ignored

        Returns:
            Decrypted text

        Raises:
            DecodeError: input is empty, not Base64, not block aligned, badly
                padded, or not UTF-8 after decryption
        """
        text = ciphertext.strip().strip('"') if isinstance(ciphertext, str) else ""
        if not text:
            raise DecodeError("Empty ciphertext", details={"reason": "empty"})

        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError("Ciphertext is not valid Base64", details={"reason": "base64"}) from exc

        if not raw or len(raw) % _BLOCK_BYTES:
            raise DecodeError(
                "Ciphertext is not block aligned",
                details={"reason": "length", "length": len(raw)}
            )

        decryptor = self._cipher().decryptor()
        padded = decryptor.update(raw) + decryptor.finalize()

        try:
            unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
            plain = unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            raise DecodeError("Invalid padding", details={"reason": "padding"}) from exc

        try:
            return plain.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("Decrypted bytes are not UTF-8", details={"reason": "encoding"}) from exc
