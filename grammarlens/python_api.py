"""
GrammarLens Python API

A purely Python interface to GrammarLens, usable without the Flask server.

Usage:
    from grammarlens import PythonAPI, EditorSession

    api = PythonAPI()
    result = api.analyze("I has a apple.", "en")

    # Or drive an editor-style session
    session = EditorSession("I has a apple.", language="en")
    session.analyze()
    for segment in session.segments():
        print(segment.text, segment.issue)
    session.apply_all()
"""

import logging
import threading
from typing import Dict, Any, List, Optional, Iterable

from .core import (
    Analysis, Issue, Segment, AnalysisInProgressError, ConfigurationError,
    StaleAnalysisError, apply_all_suggestions, build_segments, sort_issues,
)
from .hf_client import HuggingFaceCorrector, create_corrector
from .languagetool_client import LanguageToolClient, create_languagetool_client

logger = logging.getLogger(__name__)


class PythonAPI:
    """
    Programmatic interface to GrammarLens.

    Collaborators are created lazily so that importing or constructing the API
    never performs network calls.
    """

    def __init__(self, client: Optional[LanguageToolClient] = None,
                 corrector: Optional[HuggingFaceCorrector] = None):
        self._client = client
        self._corrector = corrector

    @property
    def client(self) -> LanguageToolClient:
        if self._client is None:
            self._client = create_languagetool_client()
        return self._client

    @property
    def corrector(self) -> HuggingFaceCorrector:
        if self._corrector is None:
            self._corrector = create_corrector()
        return self._corrector

    def analyze(self, text: str, language: str) -> Dict[str, Any]:
        """
        Check text with the grammar service.

        Args:
            text: The text to check
            language: Language code (e.g. 'en', 'fr', 'de')

        Returns:
            Dictionary containing:
            - status: 'success' or 'error'
            - issues: List of issue dictionaries (ascending by start)
            - meta: language, charCount and optionally detectedLanguage
            - message: Error description when status is 'error'

        Example:
            >>> api = PythonAPI()
            >>> result = api.analyze("I has a apple.", "en")
            >>> result['issues'][0]['suggestion']
            'have'
        """
        try:
            analysis = self.client.analyze(text, language)
        except Exception as e:
            logger.error(f"Error in analyze: {e}")
            return {
                'status': 'error',
                'message': str(e),
                'issues': [],
                'meta': {'language': language, 'charCount': len(text)}
            }

        result = analysis.to_dict()
        result['status'] = 'success'
        return result

    def segments(self, text: str, issues: Iterable[Issue]) -> List[Dict[str, Any]]:
        """Sort issues ascending and return renderable segment dictionaries."""
        return [segment.to_dict() for segment in build_segments(text, sort_issues(issues))]

    def apply_all(self, text: str, issues: Iterable[Issue]) -> str:
        """Apply every non-empty suggestion to the text the issues describe."""
        return apply_all_suggestions(text, issues)

    def correct(self, text: str) -> Dict[str, Any]:
        """Rewrite text with the hosted correction model."""
        try:
            result = self.corrector.correct(text)
        except ConfigurationError as e:
            logger.warning(f"Correction requested without configuration: {e}")
            return {'status': 'error', 'message': str(e), 'text': text, 'original': text}
        return result.to_dict()


class EditorSession:
    """
    Text buffer plus the analysis computed for it.

    Any change to the text (typing, applying a suggestion) discards the
    analysis, so issues can never be used against text they were not computed for.
    """

    def __init__(self, text: str = "", language: str = "en",
                 client: Optional[LanguageToolClient] = None):
        self._text = text
        self._language = language
        self._client = client
        self._analysis: Optional[Analysis] = None
        self._in_flight = threading.Lock()
        self.error: Optional[str] = None

    @property
    def client(self) -> LanguageToolClient:
        if self._client is None:
            self._client = create_languagetool_client()
        return self._client

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        if value != self._text:
            self._text = value
            self._analysis = None

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, value: str) -> None:
        if value != self._language:
            self._language = value
            self._analysis = None

    @property
    def analysis(self) -> Optional[Analysis]:
        return self._analysis

    @property
    def analyzing(self) -> bool:
        return self._in_flight.locked()

    def analyze(self) -> Analysis:
        """
        Analyze the current text.

        Raises:
            AnalysisInProgressError: If another analysis is still running
        """
        if not self._in_flight.acquire(blocking=False):
            raise AnalysisInProgressError("An analysis is already in progress")

        text = self._text
        self.error = None
        try:
            analysis = self.client.analyze(text, self._language)
        except Exception as e:
            self.error = str(e) or e.__class__.__name__
            self._analysis = None
            raise
        finally:
            self._in_flight.release()

        # Text edited while the request was in flight; the result is already stale
        if text != self._text:
            logger.info("Discarding analysis for text that changed during the request")
            return analysis

        self._analysis = analysis
        return analysis

    def segments(self) -> List[Segment]:
        if self._analysis is None:
            return build_segments(self._text, [])
        return self._analysis.segments(self._text)

    def apply_suggestion(self, issue: Issue) -> str:
        """Apply one issue's suggestion and invalidate the analysis."""
        if self._analysis is None:
            raise StaleAnalysisError("No current analysis; run analyze() first")
        self.text = self._analysis.apply(issue, self._text)
        self._analysis = None
        return self._text

    def apply_all(self) -> str:
        """Apply every suggestion from the current analysis, if any."""
        if self._analysis is None or not self._analysis.issues:
            return self._text
        self.text = self._analysis.apply_all(self._text)
        self._analysis = None
        return self._text


def analyze_text(text: str, language: str = "en") -> Dict[str, Any]:
    """Convenience wrapper around PythonAPI().analyze()."""
    return PythonAPI().analyze(text, language)


def apply_suggestions(text: str, issues: Iterable[Issue]) -> str:
    """Convenience wrapper around apply_all_suggestions()."""
    return apply_all_suggestions(text, issues)
