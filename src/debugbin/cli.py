#!/usr/bin/env python3
"""debugbin CLI - build test binaries and hand their paths to a debugger."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from debugbin.command.adapter import AdapterCommand
from debugbin.command.build_tests import BuildTestsCommand
from debugbin.command.program import ProgramCommand
from debugbin.command.test_binary import TestBinaryCommand
from debugbin.core.config import State
from debugbin.core.errors import DebugbinError, NoMatchFound
from debugbin.core.log import logger


class CliState(State):
    """Build test binaries and hand their paths to a debugger.

    debugbin runs the project's test build (cargo test --no-run by
    default), finds the compiled test binary in the build output and
    either prints it or writes it where the editor's debugger
    configuration reads it.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.build.command value)
    2. --include files, ./debugbin.yaml, the user config file and
       package defaults
    3. .env file
    4. Environment variables (DEBUGBIN_CONFIG__BUILD__COMMAND=value)

    Run `debugbin <subcommand> --help` for subcommand options.
    """

    build_tests: CliSubCommand[BuildTestsCommand]
    test_binary: CliSubCommand[TestBinaryCommand]
    program: CliSubCommand[ProgramCommand]
    adapter: CliSubCommand[AdapterCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help if none."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closes log files on every exit path
        with logger:
            try:
                exit_code = asyncio.run(subcommand.run_workflow(self))
            except NoMatchFound as e:
                logger.error("{error}", error=str(e))
                exit_code = 1
            except DebugbinError as e:
                logger.error("{error}", error=str(e))
                exit_code = 2
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
