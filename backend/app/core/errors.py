"""
Error taxonomy for the BOM import, aggregation and report pipeline
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Error kinds surfaced to API callers"""
    VALIDATION = "validation"  # Malformed BOM document, bad upload
    CONFLICT = "conflict"  # Architecture exists and overwrite was not requested
    REFERENCE = "reference"  # Architecture, BOM, service or module not found
    EXTERNAL_VALIDATION = "external_validation"  # Module catalog rejected a config
    PATH_SECURITY = "path_security"  # Report path escapes its directory
    CATALOG_UNAVAILABLE = "catalog_unavailable"  # Remote catalog could not be fetched


class ArchitectureBomError(Exception):
    """Base class for pipeline errors carrying a structured payload"""

    kind: ErrorKind = ErrorKind.VALIDATION
    status_code: int = 400

    def __init__(
        self,
        message: str,
        architecture: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.architecture = architecture
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to the `{message, architecture?, details?}` payload"""
        payload: Dict[str, Any] = {"message": self.message}
        if self.architecture is not None:
            payload["architecture"] = self.architecture
        if self.details is not None:
            payload["details"] = _details_to_payload(self.details)
        return payload


class BomValidationError(ArchitectureBomError):
    """Malformed YAML shape, unsupported media type or oversized upload"""
    kind = ErrorKind.VALIDATION
    status_code = 400


class ConflictError(ArchitectureBomError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class ReferenceNotFoundError(ArchitectureBomError):
    """A referenced record does not exist"""
    kind = ErrorKind.REFERENCE
    status_code = 404


class ExternalValidationError(ArchitectureBomError):
    """The module catalog rejected a module configuration"""
    kind = ErrorKind.EXTERNAL_VALIDATION
    status_code = 400


class PathSecurityError(ArchitectureBomError):
    kind = ErrorKind.PATH_SECURITY
    status_code = 400


class CatalogUnavailableError(ArchitectureBomError):
    """A remote catalog could not be fetched or parsed"""
    kind = ErrorKind.CATALOG_UNAVAILABLE
    status_code = 502


def _details_to_payload(details: Any) -> Any:
    """Nested causes are rendered with their own payload"""
    if isinstance(details, ArchitectureBomError):
        return details.to_dict()
    if isinstance(details, BaseException):
        return {"message": str(details), "type": type(details).__name__}
    return details
