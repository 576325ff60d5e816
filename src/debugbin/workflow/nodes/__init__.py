"""Workflow nodes for the build-and-extract graph."""

from debugbin.workflow.nodes.build import Build
from debugbin.workflow.nodes.extract import Extract
from debugbin.workflow.nodes.persist import Persist

__all__ = ["Build", "Extract", "Persist"]
