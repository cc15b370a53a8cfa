"""
Exit Codes - Process exit statuses for the tasksync CLI.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    OFFLINE = 2  # server unreachable, writes stay queued
    PARTIAL = 3  # replay ran but writes remain queued
    CONFIG_ERROR = 4
