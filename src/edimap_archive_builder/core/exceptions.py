"""Archive builder exceptions.

All failures of a conversion derive from ArchiveBuildError. A conversion is
all-or-nothing: none of these errors leaves a usable partial archive behind.
"""

from __future__ import annotations


class ArchiveBuildError(Exception):
    """Base class for archive build failures."""


class InvalidArgumentError(ArchiveBuildError, ValueError):
    """A required argument is missing or empty.

    Raised before any I/O takes place.

    Attributes:
        argument: Name of the offending argument
    """

    def __init__(self, argument: str, reason: str = "must not be None") -> None:
        self.argument = argument
        super().__init__(f"Invalid argument '{argument}': {reason}")


class UpstreamReadError(ArchiveBuildError):
    """The specification reader failed to produce messages, a model or properties.

    Attributes:
        message_id: Message whose model could not be read (None for set-level reads)
    """

    def __init__(self, detail: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        if message_id is not None:
            detail = f"{detail} (message={message_id})"
        super().__init__(detail)


class SerializationError(ArchiveBuildError):
    """A mapping model could not be serialized.

    Attributes:
        message_id: Message being serialized, when known
    """

    def __init__(self, detail: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        if message_id is not None:
            detail = f"{detail} (message={message_id})"
        super().__init__(detail)


class SinkWriteError(ArchiveBuildError, OSError):
    """Writing an entry to the archive sink, or finalizing it, failed.

    Attributes:
        path: Entry path being written (None when finalizing)
    """

    def __init__(self, detail: str, path: str | None = None) -> None:
        self.path = path
        if path is not None:
            detail = f"{detail} (entry={path})"
        super().__init__(detail)
