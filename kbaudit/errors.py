"""Exception types raised across the audit pipeline."""


class KbauditError(Exception):
    """Base class for kbaudit errors."""


class AuditAbort(KbauditError):
    """Fatal precondition: the audit cannot start (repo or content dir missing)."""


class CheckError(KbauditError):
    """A check raised unexpectedly. Carries the check name for the runner."""

    def __init__(self, check_name: str, cause: BaseException):
        self.check_name = check_name
        self.cause = cause
        super().__init__(f"{check_name}: {type(cause).__name__}: {cause}")


class TrendStoreError(KbauditError):
    """The trend file exists but cannot be parsed."""


class FixError(KbauditError):
    """An auto-fix action could not complete."""


class ConfigError(KbauditError):
    """Invalid configuration file or value."""
