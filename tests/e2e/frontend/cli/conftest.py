"""Fixtures for end-to-end tests of the top-level ``sysmgmt`` command.

Registers a test-only `log-demo` command that logs at every level, so the
console and flight recorder behaviour can be observed without touching a
database or the network.
"""

import logging

import click
import pytest
from click.testing import CliRunner

from sysmgmt.entrypoints.cli.main import sysmgmt

# pylint: disable=redefined-outer-name


@click.command()
def log_demo():
    """Emit one message per level on 'sysmgmt.demo', plus a third-party logger."""
    logger = logging.getLogger("sysmgmt.demo")
    logger.debug("This is a debug-level test message.")
    logger.info("This is an info-level test message.")
    logger.warning("This is a warning-level test message.")
    logger.error("This is an error-level test message.")
    logger.critical("This is a critical-level test message.")
    third_party_logger = logging.getLogger("some.thirdparty")
    third_party_logger.debug("This is a debug-level third-party test message.")
    third_party_logger.info("This is an info-level third-party test message.")
    third_party_logger.warning("This is a warning-level third-party test message.")
    logger.debug("This is a final debug-level test message.")


def _remove_command_everywhere(group, name: str) -> None:
    """Remove a command from a Click group and any Click-Extra sections."""
    group.commands.pop(name, None)
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for sec in getattr(group, "_sections", []):
        getattr(sec, "commands", {}).pop(name, None)


@pytest.fixture
def registered_log_demo():
    """Add 'log-demo' to the `sysmgmt` group for the duration of a test."""
    sysmgmt.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        _remove_command_everywhere(sysmgmt, "log-demo")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside a temporary working directory."""
    with runner.isolated_filesystem():
        yield
