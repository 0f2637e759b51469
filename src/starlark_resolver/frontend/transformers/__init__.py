"""
Starlark AST Transformers
=========================

Lark tree -> AST, plus literal decoding.
"""

from .base import StarlarkTransformer
from .literals import DecodedString, LiteralParser

__all__ = [
    'StarlarkTransformer',
    'DecodedString',
    'LiteralParser',
]
