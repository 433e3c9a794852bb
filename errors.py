class InvoiceSummarizerError(Exception):
    """Base class for errors raised while summarizing an invoice."""

    default_message = "Failed to process the invoice. Please try again."

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(InvoiceSummarizerError):
    default_message = "Please paste invoice text or upload a file"


class UnsupportedFileTypeError(ValidationError):
    default_message = "Unsupported file type"


class FileTooLargeError(InvoiceSummarizerError):
    default_message = "File too large (max 10MB)"


class MissingCredentialError(InvoiceSummarizerError):
    default_message = "Please enter an API key"


class BusyError(InvoiceSummarizerError):
    default_message = "An invoice is already being processed"


class ProviderError(InvoiceSummarizerError):
    """The Gemini API answered with an error object."""

    default_message = "Failed to process invoice"

    def __init__(self, message: str = "", code=None, status=None):
        super().__init__(message)
        self.code = code
        self.status = status


class TransportError(InvoiceSummarizerError):
    """The request failed or the response body was not JSON."""
