"""CLI command modules for debugbin."""

from debugbin.command.adapter import AdapterCommand
from debugbin.command.build_tests import BuildTestsCommand
from debugbin.command.program import ProgramCommand
from debugbin.command.test_binary import TestBinaryCommand

__all__ = [
    "AdapterCommand",
    "BuildTestsCommand",
    "ProgramCommand",
    "TestBinaryCommand",
]
