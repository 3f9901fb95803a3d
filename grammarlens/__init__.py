"""
GrammarLens: grammar-check highlights with one-click fixes

Forwards text to the LanguageTool API and turns the returned issues into:
- ordered render segments (plain text or issue-bearing spans)
- a rewritten text with suggestions applied

Python API Usage:
    from grammarlens import PythonAPI

    api = PythonAPI()
    result = api.analyze("I has a apple.", "en")

Or use the text helpers directly:
    from grammarlens import Issue, build_segments, apply_all_suggestions

    issue = Issue(start=2, end=5, suggestion="have")
    build_segments("I has a apple.", [issue])
    apply_all_suggestions("I has a apple.", [issue])  # "I have a apple."
"""

__version__ = "1.0.0"

from .core import (
    Analysis, Issue, Segment, SEVERITIES,
    GrammarLensError, IssueOrderError, StaleAnalysisError, AnalysisInProgressError,
    UpstreamServiceError, ConfigurationError,
    apply_all_suggestions, apply_suggestion, build_segments, sort_issues, validate_issues,
)
from .api import create_app
from .python_api import PythonAPI, EditorSession, analyze_text, apply_suggestions

__all__ = [
    'Analysis', 'Issue', 'Segment', 'SEVERITIES',
    'GrammarLensError', 'IssueOrderError', 'StaleAnalysisError', 'AnalysisInProgressError',
    'UpstreamServiceError', 'ConfigurationError',
    'apply_all_suggestions', 'apply_suggestion', 'build_segments', 'sort_issues', 'validate_issues',
    'create_app', 'PythonAPI', 'EditorSession', 'analyze_text', 'apply_suggestions',
]
