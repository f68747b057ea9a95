"""Response normalization: runs unwrap pipelines over response bodies."""

from .normalizer import ResponseNormalizer, normalize

__all__ = ["ResponseNormalizer", "normalize"]
