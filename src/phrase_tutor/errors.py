"""Exceptions raised by the tutor outside of normal learner behavior."""


class TutorError(Exception):
    """Base class for all tutor errors."""


class ManifestError(TutorError):
    """A phrase file or manifest filter could not be used."""


class ConfigError(TutorError):
    """The configuration file holds invalid values."""


class RemoteCheckError(TutorError):
    """The remote comparator failed. This is not a wrong answer; retry is allowed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
