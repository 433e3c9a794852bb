import json
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError as SchemaError

from config import Config
from errors import ProviderError, TransportError
from models import Content, GenerateContentRequest, GenerateContentResponse, InlineData, Part

logger = logging.getLogger(__name__)

PLACEHOLDER_RESPONSE = "Could not parse the response"

INVOICE_SUMMARY_PROMPT = """
Extract and summarize the following invoice information in a clear, structured format:
1. Vendor name
2. Total amount due
3. Due date
4. Key line items (up to 5 most important ones)
"""

def _create_invoice_summary_prompt(invoice_text: Optional[str] = None) -> str:
    """Return the fixed prompt, with pasted invoice text appended when given"""
    if invoice_text is None:
        return INVOICE_SUMMARY_PROMPT
    return f"{INVOICE_SUMMARY_PROMPT}\n\nHere is the invoice text:\n{invoice_text}"

def build_text_request(invoice_text: str) -> GenerateContentRequest:
    return GenerateContentRequest(contents=[
        Content(parts=[Part(text=_create_invoice_summary_prompt(invoice_text))])
    ])

def build_file_request(inline_data: InlineData) -> GenerateContentRequest:
    return GenerateContentRequest(contents=[
        Content(parts=[
            Part(text=_create_invoice_summary_prompt()),
            Part(inline_data=inline_data),
        ])
    ])

def extract_summary(data: Any) -> str:
    """
    Interpret a decoded generateContent body.
    Raises ProviderError for an error body; returns the placeholder when the
    candidate text is missing or the body does not have the expected shape.
    """
    if isinstance(data, dict) and data.get("error") is not None:
        err = data["error"]
        if isinstance(err, dict):
            raise ProviderError(err.get("message") or "", code=err.get("code"), status=err.get("status"))
        raise ProviderError(str(err))

    try:
        parsed = GenerateContentResponse.model_validate(data)
    except SchemaError:
        logger.warning("Gemini response did not match the expected structure")
        return PLACEHOLDER_RESPONSE

    text = parsed.first_text()
    if not text:
        logger.warning("Gemini response has no candidate text")
        return PLACEHOLDER_RESPONSE
    return text


class GeminiClient:
    """Minimal client for the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = Config.GEMINI_MODEL,
        base_url: str = Config.GEMINI_BASE_URL,
        timeout: Optional[float] = Config.GEMINI_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def generate_content(self, request: GenerateContentRequest) -> Dict[str, Any]:
        """POST the request and return the decoded JSON body, whatever its status code"""
        session = self.session or requests.Session()
        # Key goes in the query string only; never log the full URL
        logger.info(f"Calling Gemini model {self.model} at {self.endpoint}")
        try:
            response = session.post(
                self.endpoint,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                data=json.dumps(request.to_payload()),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            # The original exception text carries the key in its URL
            raise TransportError(f"Request to Gemini failed: {self._scrub(str(e))}") from None
        finally:
            if self.session is None:
                session.close()

        logger.info(f"Gemini responded with HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON response from Gemini (HTTP {response.status_code})") from e

    def _scrub(self, text: str) -> str:
        # requests puts the full URL, query string included, into its error messages
        return text.replace(self.api_key, "***") if self.api_key else text

    def summarize(self, request: GenerateContentRequest) -> str:
        return extract_summary(self.generate_content(request))
