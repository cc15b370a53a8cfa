"""
Core module - Domain types, ports and exceptions.

This module contains:
- domain/: Records, queue items, cache metadata and events
- ports/: Abstract interfaces that adapters must implement
- exceptions: Centralized exception hierarchy
"""

from .domain import *
from .ports import *
from .exceptions import *
