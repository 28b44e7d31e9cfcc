"""
Command dispatch: manager facade, fluent builder and retry wrapper.
"""

from manager.command import CommandBuilder, CommandState, apply_prefix
from manager.manager import DriverManager, get_manager
from manager.retry import retrying

__all__ = [
    "CommandBuilder",
    "CommandState",
    "DriverManager",
    "apply_prefix",
    "get_manager",
    "retrying",
]
