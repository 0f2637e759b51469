"""
Pytest configuration and shared fixtures for all starlark_resolver tests.

Building the lark LALR tables is the expensive part, so one Parser (and
one driver around it) is shared by the whole session. Both are stateless
between parses.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from starlark_resolver.compiler.driver import ValidationDriver
from starlark_resolver.frontend.parser import Parser
from starlark_resolver.runtime.environment import Environment


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Session-scoped parser; the grammar is compiled once."""
    return Parser()


@pytest.fixture(scope="session")
def session_driver(session_parser):
    """Session-scoped driver over the shared parser."""
    return ValidationDriver(parser=session_parser)


# =============================================================================
# Class-scoped fixtures (shared within a test class)
# =============================================================================

@pytest.fixture(scope="class")
def parser(session_parser):
    return session_parser


@pytest.fixture(scope="class")
def driver(session_driver):
    return session_driver


# =============================================================================
# Function-scoped fixtures
# =============================================================================

@pytest.fixture
def env():
    """Default environment: core builtins, default semantics."""
    return Environment.default()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "cli: marks tests that run the command-line entry point"
    )
