"""
Core GrammarLens text logic: issue records, segmentation and suggestion application.

All offsets in an Issue refer to the exact text snapshot that was analysed.
Any edit to that text invalidates every issue computed against it, so callers
must request a fresh analysis instead of trying to patch offsets.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Sequence, Tuple, Iterable

SEVERITIES = ('low', 'medium', 'high')


class GrammarLensError(Exception):
    """Base class for GrammarLens errors."""


class IssueOrderError(GrammarLensError, ValueError):
    """Raised when issues are unsorted, overlapping or outside the text."""


class StaleAnalysisError(GrammarLensError):
    """Raised when issue offsets are used against a different text snapshot."""


class AnalysisInProgressError(GrammarLensError):
    """Raised when an analysis is triggered while another one is in flight."""


class UpstreamServiceError(GrammarLensError):
    """Raised when the external grammar service fails or returns garbage."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(GrammarLensError):
    """Raised when a collaborator is missing required configuration."""


@dataclass(frozen=True)
class Issue:
    """A detected problem in the original text, covering [start, end)."""
    start: int
    end: int
    type: str = 'grammar'
    message: str = ''
    suggestion: str = ''  # empty means no fix available
    severity: str = 'low'

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Issue start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Issue end ({self.end}) must be >= start ({self.start})")
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity '{self.severity}', expected one of {SEVERITIES}")

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> Dict[str, Any]:
        """Convert issue to dictionary for JSON serialization."""
        return {
            'start': self.start,
            'end': self.end,
            'type': self.type,
            'message': self.message,
            'suggestion': self.suggestion,
            'severity': self.severity
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Issue':
        """Create issue from dictionary."""
        return cls(
            start=int(data['start']),
            end=int(data['end']),
            type=data.get('type') or 'grammar',
            message=data.get('message', ''),
            suggestion=data.get('suggestion') or '',
            severity=data.get('severity') or 'low'
        )


@dataclass(frozen=True)
class Segment:
    """A contiguous slice of text, optionally annotated with its issue."""
    text: str
    issue: Optional[Issue] = None

    @property
    def is_issue(self) -> bool:
        return self.issue is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {'text': self.text}
        if self.issue is not None:
            data['issue'] = self.issue.to_dict()
        return data


def sort_issues(issues: Iterable[Issue]) -> List[Issue]:
    """Return a new list of issues in ascending (start, end) order."""
    return sorted(issues, key=lambda issue: (issue.start, issue.end))


def validate_issues(text: str, issues: Sequence[Issue]) -> None:
    """
    Check that issues are ascending, non-overlapping and inside the text.

    Args:
        text: The text snapshot the issues were computed against
        issues: Issues in the order they will be rendered

    Raises:
        IssueOrderError: On the first violation found
    """
    cursor = 0
    for index, issue in enumerate(issues):
        if issue.end > len(text):
            raise IssueOrderError(
                f"Issue #{index} [{issue.start}, {issue.end}) extends past end of text (length {len(text)})"
            )
        if issue.start < cursor:
            raise IssueOrderError(
                f"Issue #{index} [{issue.start}, {issue.end}) starts before offset {cursor}; "
                f"issues must be sorted ascending and must not overlap"
            )
        cursor = issue.end


def build_segments(text: str, issues: Sequence[Issue], strict: bool = False) -> List[Segment]:
    """
    Split text into plain and issue-bearing segments for rendering.

    Issues are walked in the order given and are expected to be ascending and
    non-overlapping. Without ``strict`` malformed input is not corrected and
    yields malformed (but never crashing) output.

    Args:
        text: Original text
        issues: Issues over the original text, ascending by start
        strict: Validate the ordering precondition first

    Returns:
        Segments in left-to-right document order

    Raises:
        IssueOrderError: If ``strict`` and the issues are malformed
    """
    if strict:
        validate_issues(text, issues)

    if not issues:
        return [Segment(text)]

    segments = []
    cursor = 0

    for issue in issues:
        if cursor < issue.start:
            segments.append(Segment(text[cursor:issue.start]))
        segments.append(Segment(text[issue.start:issue.end], issue))
        cursor = issue.end

    if cursor < len(text):
        segments.append(Segment(text[cursor:]))

    return segments


def apply_all_suggestions(text: str, issues: Iterable[Issue]) -> str:
    """
    Apply every non-empty suggestion to the text.

    Issues are applied from the rightmost start backwards so that each splice
    uses offsets that earlier splices have not shifted. Issues with an empty
    suggestion are skipped. Overlapping issues give unspecified results.

    Args:
        text: Original text the issues were computed against
        issues: Issues in any order

    Returns:
        The rewritten text
    """
    result = text
    for issue in sorted(issues, key=lambda i: i.start, reverse=True):
        if issue.suggestion:
            result = result[:issue.start] + issue.suggestion + result[issue.end:]
    return result


def apply_suggestion(text: str, issue: Issue) -> str:
    """Replace a single issue span with its suggestion (an empty one deletes the span)."""
    return text[:issue.start] + issue.suggestion + text[issue.end:]


@dataclass(frozen=True)
class Analysis:
    """Issues returned by one analysis call, tied to the text they describe."""
    text: str
    language: str
    issues: Tuple[Issue, ...] = field(default_factory=tuple)
    detected_language: Optional[str] = None

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, 'issues', tuple(self.issues))

    @property
    def meta(self) -> Dict[str, Any]:
        meta = {
            'language': self.language,
            'charCount': len(self.text)
        }
        if self.detected_language is not None:
            meta['detectedLanguage'] = self.detected_language
        return meta

    def to_dict(self) -> Dict[str, Any]:
        """Convert analysis to the API response payload."""
        return {
            'issues': [issue.to_dict() for issue in self.issues],
            'meta': self.meta
        }

    def matches(self, text: str) -> bool:
        return text == self.text

    def ensure_current(self, text: str) -> None:
        """Raise StaleAnalysisError unless ``text`` is the analysed snapshot."""
        if not self.matches(text):
            raise StaleAnalysisError(
                f"Analysis was computed for a {len(self.text)}-character text; "
                f"the current text ({len(text)} characters) has changed, re-run the analysis"
            )

    def segments(self, text: Optional[str] = None, strict: bool = False) -> List[Segment]:
        if text is not None:
            self.ensure_current(text)
        return build_segments(self.text, self.issues, strict=strict)

    def apply_all(self, text: Optional[str] = None) -> str:
        if text is not None:
            self.ensure_current(text)
        return apply_all_suggestions(self.text, self.issues)

    def apply(self, issue: Issue, text: Optional[str] = None) -> str:
        if text is not None:
            self.ensure_current(text)
        if issue not in self.issues:
            raise StaleAnalysisError("Issue does not belong to this analysis")
        return apply_suggestion(self.text, issue)
