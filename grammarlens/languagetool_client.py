"""
LanguageTool client for GrammarLens

Sends text to the LanguageTool HTTP API and maps its matches into Issue records.
"""

import logging
import time
import requests
from typing import Dict, List, Optional, Any

from .core import Analysis, Issue, UpstreamServiceError, sort_issues
from .env_loader import get_env_var, get_env_int

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.languagetool.org/v2"

# LanguageTool rule.issueType -> Issue.severity
SEVERITY_BY_ISSUE_TYPE = {
    'misspelling': 'high',
    'grammar': 'high',
    'typographical': 'medium',
    'duplication': 'medium',
    'inconsistency': 'medium',
    'non-conformance': 'medium',
}


def normalize_language(language: str) -> str:
    """Plain 'en' is ambiguous for LanguageTool; default it to en-US."""
    return 'en-US' if language == 'en' else language


def map_severity(issue_type: Optional[str]) -> str:
    """Map a LanguageTool issue type onto low/medium/high."""
    if not issue_type:
        return 'low'
    return SEVERITY_BY_ISSUE_TYPE.get(issue_type.lower(), 'low')


def utf16_index_map(text: str) -> List[int]:
    """
    Build a table from UTF-16 code unit offset to Python string index.

    LanguageTool is a Java service and counts characters outside the BMP
    (emoji and friends) as two units. An offset that falls between the two
    halves of a surrogate pair maps to the following character. The last
    entry is ``len(text)``.
    """
    table = []
    for index, char in enumerate(text):
        table.append(index)
        if ord(char) > 0xFFFF:
            table.append(index + 1)
    table.append(len(text))
    return table


def utf16_to_index(text: str, offset: int, index_map: Optional[List[int]] = None) -> int:
    """Convert a UTF-16 code unit offset into a Python string index, clamped to the text."""
    if index_map is None:
        index_map = utf16_index_map(text)
    return index_map[min(max(0, offset), len(index_map) - 1)]


class LanguageToolClient:
    """Client for the LanguageTool /check endpoint"""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 20,
        max_retries: int = 2,
        user_agent: str = "grammarlens"
    ):
        """
        Initialize LanguageTool client

        Args:
            base_url: LanguageTool API root (e.g., https://api.languagetool.org/v2)
            timeout: Request timeout in seconds
            max_retries: Attempts for timeouts and connection errors
            user_agent: User-Agent header sent with each request
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.user_agent = user_agent
        self.endpoint = f"{self.base_url}/check"

        logger.info(f"LanguageToolClient initialized - URL: {self.base_url}, Timeout: {self.timeout}s")

    def test_connection(self) -> bool:
        """Test LanguageTool server connection"""
        try:
            response = requests.get(f"{self.base_url}/languages", timeout=5)
            if response.status_code == 200:
                logger.info("✓ LanguageTool connection successful")
                return True
            logger.warning(f"LanguageTool returned status {response.status_code}")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"✗ LanguageTool connection failed: {e}")
            return False

    def check(self, text: str, language: str) -> Dict[str, Any]:
        """
        Run a LanguageTool check and return the raw JSON payload.

        Args:
            text: Text to check
            language: Language code ('en' is sent as 'en-US')

        Returns:
            Decoded LanguageTool response

        Raises:
            UpstreamServiceError: On non-2xx responses, invalid JSON or exhausted retries
        """
        data = {
            'text': text,
            'language': normalize_language(language),
        }
        headers = {
            'Content-Type': 'application/x-www-form-urlencoded',
            'User-Agent': self.user_agent,
        }

        for attempt in range(1, self.max_retries + 1):
            try:
                logger.info(f"Attempt {attempt} to call LanguageTool ({len(text)} chars, {data['language']})")
                start_time = time.time()
                response = requests.post(self.endpoint, data=data, headers=headers, timeout=self.timeout)
                elapsed = time.time() - start_time
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                logger.warning(f"LanguageTool request failed (attempt {attempt}/{self.max_retries}): {e}")
                if attempt == self.max_retries:
                    raise UpstreamServiceError(f"LanguageTool unreachable: {e}") from e
                time.sleep(2 ** attempt)
                continue

            if not response.ok:
                logger.error(f"LanguageTool API error {response.status_code}: {response.text[:500]}")
                raise UpstreamServiceError("LanguageTool API failed", status_code=response.status_code)

            try:
                payload = response.json()
            except ValueError as e:
                logger.error(f"LanguageTool returned non-JSON body: {response.text[:200]}")
                raise UpstreamServiceError("LanguageTool returned an invalid payload",
                                           status_code=response.status_code) from e

            logger.info(f"✓ LanguageTool response received in {elapsed:.2f}s")
            return payload

        raise UpstreamServiceError("Failed to get a response from LanguageTool")

    def to_issues(self, text: str, payload: Dict[str, Any]) -> List[Issue]:
        """
        Map LanguageTool matches into Issue records, ascending by start.

        Args:
            text: The exact text that was submitted
            payload: Decoded LanguageTool response

        Returns:
            Issues over ``text``

        Raises:
            UpstreamServiceError: If the payload or one of its matches is malformed
        """
        matches = payload.get('matches') if isinstance(payload, dict) else None
        if not isinstance(matches, list):
            raise UpstreamServiceError("LanguageTool payload has no 'matches' list")

        index_map = utf16_index_map(text)
        issues = []
        for position, match in enumerate(matches):
            try:
                issues.append(self._match_to_issue(text, match, index_map))
            except (TypeError, ValueError, AttributeError, KeyError, IndexError) as e:
                logger.error(f"Malformed LanguageTool match at position {position}: {e}")
                raise UpstreamServiceError("LanguageTool returned a malformed match") from e

        return sort_issues(issues)

    @staticmethod
    def _match_to_issue(text: str, match: Dict[str, Any], index_map: List[int]) -> Issue:
        offset = int(match.get('offset', 0))
        length = int(match.get('length', 0))
        start = utf16_to_index(text, offset, index_map)
        end = max(start, utf16_to_index(text, offset + length, index_map))

        replacements = match.get('replacements') or []
        suggestion = (replacements[0].get('value') or '') if replacements else ''

        rule = match.get('rule') or {}
        category = rule.get('category') or {}

        return Issue(
            start=start,
            end=end,
            type=str(category.get('id') or 'grammar'),
            message=str(match.get('message') or ''),
            suggestion=str(suggestion),
            severity=map_severity(rule.get('issueType'))
        )

    def analyze(self, text: str, language: str) -> Analysis:
        """Check ``text`` and wrap the issues in an Analysis tied to that text."""
        payload = self.check(text, language)
        issues = self.to_issues(text, payload)

        detected = None
        language_info = payload.get('language')
        if isinstance(language_info, dict) and isinstance(language_info.get('detectedLanguage'), dict):
            detected = language_info['detectedLanguage'].get('code')
        logger.info(f"Analysis complete - {len(issues)} issues, detected language: {detected}")
        return Analysis(text=text, language=language, issues=issues, detected_language=detected)


def create_languagetool_client(base_url: str = None, timeout: int = None,
                               max_retries: int = None) -> LanguageToolClient:
    """
    Factory function to create a LanguageTool client

    Args:
        base_url: API root (default: LANGUAGETOOL_URL or the public API)
        timeout: Request timeout (default: LANGUAGETOOL_TIMEOUT or 20)
        max_retries: Retry attempts (default: LANGUAGETOOL_MAX_RETRIES or 2)
    """
    base_url = base_url or get_env_var('LANGUAGETOOL_URL', DEFAULT_BASE_URL)
    timeout = timeout or get_env_int('LANGUAGETOOL_TIMEOUT', 20)
    max_retries = max_retries or get_env_int('LANGUAGETOOL_MAX_RETRIES', 2)

    return LanguageToolClient(base_url=base_url, timeout=timeout, max_retries=max_retries)
