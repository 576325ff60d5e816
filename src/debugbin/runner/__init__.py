"""Build tool runners."""

from debugbin.runner.build import BuildRunner, scratch_file

__all__ = ["BuildRunner", "scratch_file"]
