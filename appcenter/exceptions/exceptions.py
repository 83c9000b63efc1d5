
class DomainError(Exception):
    """Base exception for all domain errors.
    This is the root exception for all domain layer errors. Services should raise
    subclasses of it and the API layer converts them to HTTP responses.
    """
    code = "SY4001"
    default_message = "Domain error"

    def __init__(self, message: str | None = None):
        """Initialize domain error with message.
        Args:
            message: Error message describing what went wrong.
        """
        super().__init__(message or self.default_message)


class NotFoundError(DomainError):
    """Exception raised when a requested resource is not found in the domain."""
    code = "SY4041"
    default_message = "Resource not found"

class ConflictError(DomainError):
    """Exception raised when a domain operation conflicts with existing state."""
    code = "SY4091"
    default_message = "Resource already exists"

class ValidationError(DomainError):
    """Exception raised when domain data fails validation rules."""
    code = "SY4001"
    default_message = "Validation failed"

class PermissionError(DomainError):
    """Exception raised when a user lacks required permissions for an operation."""
    code = "AU4031"
    default_message = "Permission denied"


class AuthenticationError(DomainError):
    """Exception raised when credentials or tokens are missing or invalid."""
    code = "AU0401"
    default_message = "Invalid credentials"


class FileSystemError(DomainError):
    """Exception raised when a move/delete/mkdir on the storage root fails."""
    code = "FL5001"
    default_message = "File processing failed"


class UpstreamParseError(DomainError):
    """Exception raised when the binary metadata extractor cannot read a package."""
    code = "FL4003"
    default_message = "Unable to parse application file"


ParseError = UpstreamParseError


class UnsupportedFileType(ValidationError):
    code = "FL4002"
    default_message = "Only .ipa or .apk files are allowed"


class FileTooLarge(ValidationError):
    code = "SY4131"
    default_message = "File exceeds the maximum allowed size"


class MissingRequiredField(ValidationError):
    code = "VR4001"
    default_message = "Version and build number are required"


class UnsupportedPlatform(ValidationError):
    code = "AP4002"
    default_message = "Only iOS applications support plist installation"


class FileNotFoundOrNotStaged(NotFoundError):
    code = "VR4002"
    default_message = "File not found or already processed"


class DuplicateDownloadKey(ConflictError):
    code = "AP4091"
    default_message = "Download Key already exists"
