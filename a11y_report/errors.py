"""Error types raised (or returned) by the audit pipeline."""


class AuditError(Exception):
    """Base class for all a11y_report errors."""


class ConfigError(AuditError):
    """The audit configuration could not be loaded or is invalid."""


class ScanUnavailable(AuditError):
    """axe-core could not run against the current page state.

    Raised when the page is mid-navigation, the frame was detached, the
    axe script could not be injected, or the run timed out. Callers decide
    whether to retry or skip the page.
    """

    def __init__(self, message, page_label=None):
        super().__init__(message)
        self.page_label = page_label


class ScreenshotUnavailable(AuditError):
    """A full-page or element screenshot could not be captured."""

    def __init__(self, message, name=None):
        super().__init__(message)
        self.name = name


class RenderFailure(AuditError):
    """A report document could not be written to storage."""

    def __init__(self, message, filename=None):
        super().__init__(message)
        self.filename = filename
