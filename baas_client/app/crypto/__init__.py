"""
Cipher package.

AES-CBC codec matching the backend's encrypted request and response bodies.
"""

from .cipher import CipherCodec

__all__ = ["CipherCodec"]
