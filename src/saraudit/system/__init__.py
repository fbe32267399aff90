"""
System interaction utilities.

This module provides command execution with timeouts, decoder availability
checks, CPU count detection and the informational hardware inventory.
"""

from .commands import (
    check_atopsar_installed,
    check_sadf_installed,
    get_vcpu_count,
    run_command,
)
from .inventory import collect_inventory

__all__ = [
    "check_atopsar_installed",
    "check_sadf_installed",
    "get_vcpu_count",
    "run_command",
    "collect_inventory",
]
