"""Errors raised by the data access layer."""


class DaoError(Exception):
    """Base class for storage-layer failures."""


class ConstraintViolation(DaoError):
    """A write was rejected by a storage constraint, e.g. a duplicate primary key."""


class StorageUnavailable(DaoError):
    """The backend could not be reached or failed to run a statement."""


class MappingError(ValueError):
    """Field/column translation tables are inconsistent or a bag does not fit them."""
