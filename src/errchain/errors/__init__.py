"""
errors subpackage: error handling + logging around code that collects errors.

Key primitives
--------------
- ErrorHandlingConfig: global config (mode, log paths, JSONL, etc.)
- configure_logging(): console + file logging, optional JSONL event logger
- ErrorReporter: captures failures/skips, renders a report, hands failures back as an ErrorChain
- step(): context manager to wrap a named step
- guard(): one-liner wrapper for callables
- collect(): context manager appending a raised exception to an ErrorChain
"""

from .config import ConfigError, ErrorHandlingConfig, load_config
from .logging import configure_logging, JsonlEventLogger
from .reporter import ErrorReporter
from .guards import collect, step, guard

__all__ = [
    "ConfigError",
    "ErrorHandlingConfig",
    "load_config",
    "JsonlEventLogger",
    "configure_logging",
    "ErrorReporter",
    "collect",
    "step",
    "guard",
]
