"""
Lead Import Errors
Request-fatal conditions that abort an import before anything is written
"""


class LeadImportError(Exception):
    """Base class for request-fatal import errors"""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnsupportedFileError(LeadImportError):
    """Raised when the upload is missing, has an unsupported extension, or cannot be parsed"""
    pass


class EmptyFileError(LeadImportError):
    """Raised when the upload parses to zero data rows"""
    def __init__(self, message: str = "No data found in file"):
        super().__init__(message)


class FileTooLargeError(LeadImportError):
    """Raised when the upload exceeds the configured size limit"""
    status_code = 413

    def __init__(self, limit_bytes: int):
        self.limit_bytes = limit_bytes
        limit_mb = limit_bytes / (1024 * 1024)
        super().__init__(f"File too large. Maximum upload size is {limit_mb:g} MB")


class InvalidCampaignError(LeadImportError):
    """Raised when the target campaign is missing, foreign, or not draft/active"""
    def __init__(self, message: str = "Invalid campaign selected"):
        super().__init__(message)


class InvalidMappingError(LeadImportError):
    """Raised when the column mapping is not a JSON object"""
    pass
