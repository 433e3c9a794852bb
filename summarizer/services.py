import logging
from typing import Callable, Iterable

from errors import BusyError, InvoiceSummarizerError, MissingCredentialError, ValidationError
from file_encoding import encode_file, read_upload
from llm_wrappers import GeminiClient, build_file_request, build_text_request
from models import Message
from session_store import SessionState

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GeminiClient]

FALLBACK_ERROR = "Failed to process the invoice. Please try again."


def select_file(state: SessionState, file_storage, max_size: int, allowed_extensions: Iterable[str]) -> None:
    """
    Validate an uploaded file and store it as the pending file.
    Oversized or unsupported files raise and leave the session untouched.
    """
    pending = read_upload(file_storage, max_size, allowed_extensions)
    state.set_file(pending)
    logger.info(f"Selected file {pending.name} ({pending.size_kb:.1f} KB, {pending.mime_type})")


def check_submission(state: SessionState) -> None:
    """Raise if the session cannot be submitted right now. Makes no network call."""
    if state.processing:
        raise BusyError()
    if not state.invoice_text.strip() and state.file is None:
        raise ValidationError()
    if not state.api_key:
        raise MissingCredentialError()


def user_message_for(state: SessionState) -> str:
    if state.file is not None:
        return f"Please summarize this invoice from file: {state.file.name}"
    return "Please summarize this invoice text"


def format_error(error: Exception) -> str:
    message = getattr(error, "message", None) or str(error) or FALLBACK_ERROR
    return f"Error: {message}"


def process_invoice(state: SessionState, client_factory: ClientFactory) -> None:
    """
    Summarize the pending invoice and append the outcome to the transcript.

    Raises BusyError, ValidationError or MissingCredentialError before touching
    the session. After that every failure becomes an "Error: ..." assistant
    message and the processing flag is always cleared.
    """
    check_submission(state)

    try:
        state.append_message(Message(role="user", content=user_message_for(state)))
        state.set_processing(True)
        try:
            client = client_factory(state.api_key)
            if state.file is not None:
                # File wins over pasted text
                request = build_file_request(encode_file(state.file))
            else:
                request = build_text_request(state.invoice_text)
            content = client.summarize(request)
        except InvoiceSummarizerError as e:
            # Logged without traceback
            logger.error(f"Error processing invoice: {e}")
            content = format_error(e)
        except Exception as e:
            logger.exception(f"Error processing invoice: {e}")
            content = format_error(e)
        state.append_message(Message(role="assistant", content=content))
    finally:
        state.set_processing(False)


def confirm_api_key(state: SessionState, api_key: str, client_factory: ClientFactory) -> bool:
    """
    Store the API key and, if a submission was waiting for it, retry that submission once.
    Returns True when a retry ran.
    """
    if not api_key or not api_key.strip():
        raise MissingCredentialError()
    state.set_api_key(api_key)
    if not state.awaiting_credential:
        return False
    state.cancel_credential_request()
    process_invoice(state, client_factory)
    return True


def default_client_factory(config) -> ClientFactory:
    """Build GeminiClient instances from a Flask config mapping"""
    def factory(api_key: str) -> GeminiClient:
        return GeminiClient(
            api_key,
            model=config['GEMINI_MODEL'],
            base_url=config['GEMINI_BASE_URL'],
            timeout=config['GEMINI_TIMEOUT'],
        )
    return factory
