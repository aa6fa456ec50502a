"""Unit tests configuration file."""

import os

import pytest

from zapgen.generator.parser import load_schema

USER_PROTO = "example/v1/user.proto"
FIXTURE = os.path.join(os.path.dirname(os.path.realpath(__file__)), "generator", "user.proto")


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def user_schema():
    """Schema holding the user.proto fixture under its import path."""
    with open(FIXTURE, encoding="utf-8") as f:
        return load_schema([(USER_PROTO, f.read())])
