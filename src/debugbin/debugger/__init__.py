"""Debug adapter discovery."""

from debugbin.debugger.adapter import adapter_command, find_adapter

__all__ = ["adapter_command", "find_adapter"]
