"""
CLI Module - Command Line Interface for tasksync.
"""

from .app import main, run
from .exit_codes import ExitCode

__all__ = ["main", "run", "ExitCode"]
