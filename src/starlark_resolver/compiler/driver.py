"""
Validation Driver

Parse -> validate for one source file, mirroring a compiler driver:
phases run in order and every problem lands in the file's reporter.
"""

import logging
from typing import List, Optional, Sequence

from ..frontend.parser import Parser
from ..passes.validation import validate_file
from ..runtime.environment import Environment
from ..shared.errors import StarlarkSyntaxError
from ..shared.nodes import Statement
from ..utils.config import DEFAULT_SOURCE_FILE
from .starlark_file import StarlarkFile

logger = logging.getLogger("starlark_resolver.compiler.driver")


class ValidationResult:
    """Validation result"""
    def __init__(self, file: StarlarkFile, success: bool = False):
        self.file = file
        self.success = success

    def has_errors(self) -> bool:
        """True if parsing or validation reported errors."""
        return self.file.reporter.has_errors()

    def get_errors(self) -> List[str]:
        """Formatted diagnostics, one string for the whole file (empty if none)"""
        if self.file.reporter.has_errors():
            return [self.file.reporter.format_all_errors()]
        return []


class ValidationDriver:
    """
    Entry point for parsing and validating Starlark sources.

    One Parser is built per driver and reused; validation state is created
    afresh for every file.
    """

    def __init__(self, parser: Optional[Parser] = None, env: Optional[Environment] = None):
        self.parser = parser if parser is not None else Parser()
        self.env = env if env is not None else Environment.default()

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> StarlarkFile:
        return self.parser.parse(source, source_file)

    def parse_with_prelude(
        self,
        source: str,
        prelude: Sequence[Statement],
        source_file: str = DEFAULT_SOURCE_FILE,
    ) -> StarlarkFile:
        """Parse source and put the prelude statements in front of its own."""
        return self.parse(source, source_file).with_prelude(prelude)

    def parse_and_validate(
        self,
        source: str,
        env: Optional[Environment] = None,
        source_file: str = DEFAULT_SOURCE_FILE,
        is_build_file: bool = False,
    ) -> StarlarkFile:
        """
        Parse and validate source.

        Scan, parse and validation errors are all recorded in the returned
        file; inspecting them is the caller's job.
        """
        file = self.parse(source, source_file)
        validate_file(file, env if env is not None else self.env, is_build_file)
        logger.info(f"{source_file}: {len(file.reporter.errors)} error(s)")
        return file

    def validate(
        self,
        source: str,
        env: Optional[Environment] = None,
        source_file: str = DEFAULT_SOURCE_FILE,
        is_build_file: bool = False,
    ) -> ValidationResult:
        file = self.parse_and_validate(source, env, source_file, is_build_file)
        return ValidationResult(file, success=file.ok())

    def check(
        self,
        source: str,
        env: Optional[Environment] = None,
        source_file: str = DEFAULT_SOURCE_FILE,
        is_build_file: bool = False,
    ) -> StarlarkFile:
        """Like parse_and_validate, but raises StarlarkSyntaxError unless the file is ok."""
        file = self.parse_and_validate(source, env, source_file, is_build_file)
        if not file.ok():
            raise StarlarkSyntaxError(file.errors())
        return file
