"""Exception hierarchy for orphanprune."""


class OrphanPruneError(Exception):
    """Base class for all orphanprune errors."""


class ConfigurationError(OrphanPruneError):
    """Missing or unreadable root, alias table or config file. Fatal."""


class ModuleParseError(OrphanPruneError):
    """A source file could not be parsed into module declarations."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class ConfirmationRequired(OrphanPruneError):
    """Deletion was requested without passing the confirmation gate."""
