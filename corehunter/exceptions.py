# corehunter/exceptions.py

"""
Exception hierarchy shared by all corehunter modules.

Validation problems are detected while constructing a dataset and are always
raised before any object is returned. Lookup problems are precondition
violations of the caller (an index out of range, an unknown identifier).
"""


class CoreHunterError(Exception):
    """Base class for exceptions in this package."""
    pass


class ValidationError(CoreHunterError, ValueError):
    """Raised when input data violates a dataset invariant."""
    pass


class DataLookupError(CoreHunterError, IndexError):
    """Raised when an accession, marker, allele or identifier does not exist."""
    pass


class DatasetIOError(CoreHunterError, OSError):
    """Raised when a data file can not be read, written or parsed."""
    pass


class OptimizationError(CoreHunterError, RuntimeError):
    """Raised when no feasible subset could be found."""
    pass


class DatasetError(CoreHunterError):
    """Raised on invalid use of a dataset repository."""
    pass
