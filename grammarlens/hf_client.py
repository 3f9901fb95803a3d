"""
Hugging Face grammar corrector for GrammarLens

Rewrites a short text with a hosted grammar-correction model. The hosted
inference API is flaky (it answers with HTML pages while a model loads), so
every upstream problem is reported as an explicit "unavailable" result that
carries the original text back instead of raising.
"""

import json
import logging
import requests
from dataclasses import dataclass
from typing import Dict, Any, Optional

from .core import ConfigurationError
from .env_loader import get_env_var, get_env_int

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "prithivida/grammar_error_correcter_v1"
INFERENCE_URL = "https://api-inference.huggingface.co/models"

STATUS_CORRECTED = 'corrected'
STATUS_UNCHANGED = 'unchanged'
STATUS_UNAVAILABLE = 'unavailable'


@dataclass(frozen=True)
class CorrectionResult:
    """Outcome of one correction request."""
    status: str
    text: str
    original: str
    reason: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.status != STATUS_UNAVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'status': self.status,
            'text': self.text,
            'original': self.original
        }
        if self.reason:
            data['reason'] = self.reason
        return data


class HuggingFaceCorrector:
    """Client for a Hugging Face hosted text2text grammar model."""

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL,
                 timeout: int = 30, max_chars: int = 300):
        """
        Args:
            api_key: Hugging Face token (HF_API_KEY when omitted)
            model: Model id on the inference API
            timeout: Request timeout in seconds
            max_chars: Input is truncated to this many characters to keep latency down
        """
        self.api_key = api_key if api_key is not None else get_env_var('HF_API_KEY')
        self.model = model
        self.timeout = timeout
        self.max_chars = max_chars
        self.endpoint = f"{INFERENCE_URL}/{self.model}"

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _unavailable(self, text: str, reason: str) -> CorrectionResult:
        logger.error(f"Correction unavailable: {reason}")
        return CorrectionResult(status=STATUS_UNAVAILABLE, text=text, original=text, reason=reason)

    def correct(self, text: str) -> CorrectionResult:
        """
        Correct grammar in ``text``.

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not self.configured:
            raise ConfigurationError("Missing HF_API_KEY")

        body_text = text[:self.max_chars]
        headers = {
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': 'application/json'
        }

        try:
            response = requests.post(self.endpoint, json={'inputs': body_text},
                                     headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            return self._unavailable(text, f"request failed: {e}")

        body = response.text
        if not body.lstrip().startswith('['):
            logger.debug(f"HF API returned non-JSON (status {response.status_code}): {body[:200]}")
            return self._unavailable(text, f"non-JSON response (HTTP {response.status_code})")

        try:
            data = json.loads(body)
        except ValueError:
            return self._unavailable(text, "malformed JSON response")

        generated = None
        if data and isinstance(data[0], dict):
            generated = data[0].get('generated_text')
        if not isinstance(generated, str):
            return self._unavailable(text, "response has no generated_text")

        # Only the truncated head was sent; keep the untouched tail
        generated += text[self.max_chars:]
        status = STATUS_UNCHANGED if generated == text else STATUS_CORRECTED
        logger.info(f"HF correction {status} ({len(text)} chars)")
        return CorrectionResult(status=status, text=generated, original=text)


def create_corrector(api_key: str = None, model: str = None) -> HuggingFaceCorrector:
    """Factory reading HF_API_KEY, HF_MODEL and HF_TIMEOUT."""
    return HuggingFaceCorrector(
        api_key=api_key,
        model=model or get_env_var('HF_MODEL', DEFAULT_MODEL),
        timeout=get_env_int('HF_TIMEOUT', 30)
    )
