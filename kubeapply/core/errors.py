"""Exceptions raised while loading, addressing and applying manifests."""

from typing import Any, Optional


class KubeApplyError(Exception):
    """Base class for every kubeapply failure."""


class LocatorError(KubeApplyError):
    """Raised when a document locator cannot be opened.

    Covers unrecognized URI schemes, local paths that do not exist and
    remote fetches that fail.

    Attributes:
        message: Description of the failure
        locator: The locator that could not be opened
    """

    def __init__(self, message: str, locator: Optional[str] = None) -> None:
        """Initialize LocatorError exception.

        Args:
            message: Error message describing the failure
            locator: The offending locator (optional)
        """
        super().__init__(message)
        self.locator = locator


class DecodeError(KubeApplyError):
    """Raised when a stream cannot be decoded into mapping documents.

    Attributes:
        message: Description of the failure
        locator: Where the content came from (optional)
    """

    def __init__(self, message: str, locator: Optional[str] = None) -> None:
        super().__init__(message)
        self.locator = locator


class MissingFieldError(KubeApplyError):
    """Raised when a required document field is absent or blank.

    Fatal for the document being processed, never for the whole run.

    Attributes:
        message: Description of the failure
        field: Dotted path of the missing field (e.g. ``metadata.name``)
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class FieldTypeError(KubeApplyError):
    """Raised when a document field holds a value of the wrong type.

    Attributes:
        message: Description of the failure
        field: Dotted path of the field
        expected: Name of the expected type
        actual: Name of the type actually found
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.expected = expected
        self.actual = actual


class RemoteError(KubeApplyError):
    """Unsuccessful HTTP result from the resource API.

    The reconciler records these on the per-document result instead of
    raising them; ``ApplyResult.raise_for_error()`` re-raises on demand.

    Attributes:
        message: Description of the failure
        operation: Logical operation (create, replace, delete)
        status_code: HTTP status returned by the server
        body: Response body as text
        url: Request URL
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.body = body
        self.url = url


class TransportError(KubeApplyError):
    """Network-level failure talking to the API server (no HTTP status).

    Wraps the underlying ``httpx.HTTPError``; never retried.
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class UnknownActionError(KubeApplyError):
    """Raised when an instruction names an action other than create/replace/delete."""

    def __init__(self, message: str, action: Optional[Any] = None) -> None:
        super().__init__(message)
        self.action = action


class InstructionError(KubeApplyError):
    """Raised when the instruction list itself cannot be read.

    This aborts the run before any document is processed.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigurationError(KubeApplyError):
    """Raised when configuration values are invalid or missing."""
