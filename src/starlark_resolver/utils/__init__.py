"""
starlark_resolver utilities package
"""

from .io_utils import read_source_file
from .spelling import did_you_mean, edit_distance, suggest

__all__ = ["read_source_file", "did_you_mean", "edit_distance", "suggest"]
