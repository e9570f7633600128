"""
errchain: collect several independent errors into one inspectable error value.

Usage example
-------------
    from errchain import ErrorChain, is_error, wrap

    errs = ErrorChain()
    errs.add(ValueError("some error"))
    errs.add(wrap(CodeError(12), "wrap it up"))

    str(errs)                     # "some error"
    is_error(errs, CodeError(12)) # True, found through the second error's cause
"""

from .chain import ChainCycleError, EmptyChainError, ErrorChain, FrozenChainError, Link, new
from .inspection import as_error, is_error, unwrap, walk
from .version import __version__
from .wrapping import WrappedError, wrap

__all__ = [
    "ChainCycleError",
    "EmptyChainError",
    "ErrorChain",
    "FrozenChainError",
    "Link",
    "new",
    "as_error",
    "is_error",
    "unwrap",
    "walk",
    "WrappedError",
    "wrap",
    "__version__",
]
