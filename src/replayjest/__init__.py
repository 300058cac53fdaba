"""Record failing jest test files with the Replay instrumented runtime."""

from .config import Configuration, load_configuration
from .runtime import ReplayOrchestrator
from .scanner import scan_targets, strip_colors
from .selection import select_targets

__all__ = [
    "Configuration",
    "ReplayOrchestrator",
    "load_configuration",
    "scan_targets",
    "select_targets",
    "strip_colors",
]

__version__ = "0.1.0"
