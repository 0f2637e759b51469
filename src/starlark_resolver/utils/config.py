"""
Configuration constants used throughout starlark_resolver
"""

import os
import tempfile

# Source handling
DEFAULT_SOURCE_FILE = "<unknown>"
DEFAULT_FILE_ENCODING = "utf-8"

# Parser configuration (lark grammar cache lives under the temp dir when enabled)
GRAMMAR_FILE_NAME = "grammar.lark"
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "starlark_resolver_grammar.cache")
INDENT_TAB_LEN = 8

# Diagnostics
COLOR_ENV_VAR = "STARLARK_COLOR"
READ_ONLY_VARIABLE_URL = (
    "https://bazel.build/versions/master/docs/skylark/errors/read-only-variable.html"
)
PACKAGE_NAME_URL = "https://docs.bazel.build/versions/master/skylark/lib/native.html#package_name"
REPOSITORY_NAME_URL = (
    "https://docs.bazel.build/versions/master/skylark/lib/native.html#repository_name"
)

# Placeholder the parser uses for an expression it could not read
ERROR_IDENTIFIER = "$error$"

# Semantics flag names (command-line spelling, without the leading --)
FLAG_DISALLOW_LOAD_AFTER_STATEMENT = "incompatible_bzl_disallow_load_after_statement"
FLAG_RESTRICT_STRING_ESCAPES = "incompatible_restrict_string_escapes"

# Spell checking: the longest edit distance ever suggested
MAX_SUGGESTION_DISTANCE = 5
