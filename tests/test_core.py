"""
Unit tests for GrammarLens segmentation and suggestion application.
"""

import pytest
from grammarlens.core import (
    Analysis, Issue, Segment, IssueOrderError, StaleAnalysisError,
    apply_all_suggestions, apply_suggestion, build_segments, sort_issues, validate_issues,
)


def _join(segments):
    return ''.join(segment.text for segment in segments)


class TestIssue:
    """Test cases for the Issue value type."""

    def test_defaults(self):
        """Test default field values."""
        issue = Issue(start=1, end=2)
        assert issue.type == 'grammar'
        assert issue.suggestion == ''
        assert issue.severity == 'low'
        assert issue.span == (1, 2)

    def test_rejects_negative_start(self):
        """Test a negative start is rejected."""
        with pytest.raises(ValueError):
            Issue(start=-1, end=2)

    def test_rejects_end_before_start(self):
        """Test end before start is rejected."""
        with pytest.raises(ValueError):
            Issue(start=4, end=3)

    def test_rejects_unknown_severity(self):
        """Test an unknown severity is rejected."""
        with pytest.raises(ValueError):
            Issue(start=0, end=1, severity='minor')

    def test_dict_conversion(self):
        """Test dictionary conversion."""
        data = {
            'start': 2, 'end': 5, 'type': 'GRAMMAR', 'message': 'Verb agreement',
            'suggestion': 'have', 'severity': 'high'
        }
        issue = Issue.from_dict(data)
        assert issue.to_dict() == data

    def test_from_dict_fills_missing_fields(self):
        """Test missing fields are filled with defaults."""
        issue = Issue.from_dict({'start': 0, 'end': 0, 'suggestion': None})
        assert issue.type == 'grammar'
        assert issue.suggestion == ''
        assert issue.severity == 'low'

    def test_issue_is_immutable(self):
        """Test issues are immutable."""
        issue = Issue(start=0, end=1)
        with pytest.raises(AttributeError):
            issue.start = 3


class TestBuildSegments:
    """Test cases for build_segments."""

    def test_no_issues_returns_whole_text(self):
        """Test no issues returns the whole text."""
        assert build_segments("Hello world", []) == [Segment("Hello world")]

    def test_no_issues_on_empty_text(self):
        """Test empty text without issues."""
        assert build_segments("", []) == [Segment("")]

    def test_single_issue_scenario(self):
        """Test a single issue."""
        text = "I has a apple."
        issue = Issue(start=2, end=5, suggestion="have")

        segments = build_segments(text, [issue])

        assert segments == [
            Segment("I "),
            Segment("has", issue),
            Segment(" a apple."),
        ]
        assert segments[1].is_issue
        assert not segments[0].is_issue

    def test_concatenation_reconstructs_text(self):
        """Test segment texts concatenate back to the input."""
        text = "This are bad sentences, and I has a apple."
        issues = [
            Issue(start=5, end=8, suggestion="is"),
            Issue(start=30, end=33, suggestion="have"),
            Issue(start=34, end=35, suggestion="an"),
        ]
        segments = build_segments(text, issues)
        assert _join(segments) == text
        assert [s.issue for s in segments if s.is_issue] == issues

    def test_issue_at_start_and_end(self):
        """Test issues at the start and end of the text."""
        text = "abcdef"
        first = Issue(start=0, end=2)
        last = Issue(start=4, end=6)
        segments = build_segments(text, [first, last])
        assert segments == [Segment("ab", first), Segment("cd"), Segment("ef", last)]

    def test_adjacent_issues_have_no_plain_gap(self):
        """Test adjacent issues produce no plain segment between them."""
        text = "abcd"
        a = Issue(start=0, end=2)
        b = Issue(start=2, end=4)
        assert build_segments(text, [a, b]) == [Segment("ab", a), Segment("cd", b)]

    def test_zero_length_issue_produces_empty_issue_segment(self):
        """Test a zero-length issue produces an empty issue segment."""
        text = "abcdef"
        insertion = Issue(start=3, end=3, suggestion="!")
        segments = build_segments(text, [insertion])
        assert segments == [Segment("abc"), Segment("", insertion), Segment("def")]

    def test_zero_length_issue_at_end_of_text(self):
        """Test a zero-length issue at the end of the text."""
        text = "abc"
        insertion = Issue(start=3, end=3, suggestion=".")
        assert build_segments(text, [insertion]) == [Segment("abc"), Segment("", insertion)]

    def test_unsorted_issues_are_not_corrected(self):
        """Test unsorted issues are not reordered."""
        text = "abcdef"
        late = Issue(start=3, end=4)
        early = Issue(start=0, end=1)

        segments = build_segments(text, [late, early])

        assert segments == [
            Segment("abc"),
            Segment("d", late),
            Segment("a", early),
            Segment("bcdef"),
        ]

    def test_overlapping_issues_do_not_crash(self):
        """Test overlapping issues do not crash."""
        text = "abcdef"
        segments = build_segments(text, [Issue(start=0, end=4), Issue(start=2, end=5)])
        assert [s.text for s in segments] == ["abcd", "cde", "f"]

    def test_strict_accepts_well_formed_issues(self):
        """Test strict mode accepts well-formed issues."""
        text = "abcdef"
        issues = [Issue(start=0, end=1), Issue(start=1, end=1), Issue(start=3, end=6)]
        assert _join(build_segments(text, issues, strict=True)) == text

    def test_strict_rejects_unsorted_issues(self):
        """Test strict mode rejects unsorted issues."""
        with pytest.raises(IssueOrderError, match="sorted ascending"):
            build_segments("abcdef", [Issue(start=3, end=4), Issue(start=0, end=1)], strict=True)

    def test_strict_rejects_overlap(self):
        """Test strict mode rejects overlaps."""
        with pytest.raises(IssueOrderError):
            build_segments("abcdef", [Issue(start=0, end=4), Issue(start=2, end=5)], strict=True)

    def test_strict_rejects_span_past_end(self):
        """Test a span past the end of the text is rejected."""
        with pytest.raises(IssueOrderError, match="past end of text"):
            validate_issues("abc", [Issue(start=1, end=4)])

    def test_issue_order_error_is_value_error(self):
        """Test IssueOrderError is a ValueError."""
        with pytest.raises(ValueError):
            validate_issues("abc", [Issue(start=2, end=3), Issue(start=0, end=1)])

    def test_sort_issues_returns_new_ascending_list(self):
        """Test sorting returns a new ascending list."""
        issues = [Issue(start=5, end=6), Issue(start=0, end=1), Issue(start=0, end=0)]
        ordered = sort_issues(issues)
        assert [i.span for i in ordered] == [(0, 0), (0, 1), (5, 6)]
        assert issues[0].start == 5


class TestApplyAllSuggestions:
    """Test cases for apply_all_suggestions."""

    def test_single_issue_scenario(self):
        """Test a single issue."""
        issue = Issue(start=2, end=5, suggestion="have")
        assert apply_all_suggestions("I has a apple.", [issue]) == "I have a apple."

    def test_two_non_overlapping_issues(self):
        """Test two non-overlapping issues."""
        issues = [Issue(start=0, end=1, suggestion="X"), Issue(start=5, end=6, suggestion="Y")]
        assert apply_all_suggestions("abcdefg", issues) == "XbcdeYg"

    def test_order_of_input_does_not_matter(self):
        """Test input order does not matter."""
        issues = [
            Issue(start=0, end=1, suggestion="Xyz"),
            Issue(start=3, end=4, suggestion=""),
            Issue(start=5, end=6, suggestion="Y"),
        ]
        text = "abcdefg"
        assert apply_all_suggestions(text, issues) == apply_all_suggestions(text, list(reversed(issues)))
        assert apply_all_suggestions(text, issues) == "XyzbcdeYg"

    def test_zero_length_issue_inserts(self):
        """Test a zero-length issue inserts."""
        assert apply_all_suggestions("abcdef", [Issue(start=3, end=3, suggestion="!")]) == "abc!def"

    def test_insertion_at_end_of_text_appends(self):
        """Test insertion at the end of the text appends."""
        text = "abcdef"
        issue = Issue(start=len(text), end=len(text), suggestion="!")
        assert apply_all_suggestions(text, [issue]) == "abcdef!"

    def test_empty_suggestion_leaves_span_untouched(self):
        """Test an empty suggestion leaves the span untouched."""
        text = "I has a apple."
        issues = [Issue(start=2, end=5, suggestion=""), Issue(start=6, end=7, suggestion="an")]
        assert apply_all_suggestions(text, issues) == "I has an apple."

    def test_no_issues_returns_same_text(self):
        """Test no issues returns the same text."""
        assert apply_all_suggestions("unchanged", []) == "unchanged"

    def test_replacement_changing_length(self):
        """Test replacements that change the text length."""
        text = "teh cat sat on teh mat"
        issues = [Issue(start=0, end=3, suggestion="the"), Issue(start=15, end=18, suggestion="the big")]
        assert apply_all_suggestions(text, issues) == "the cat sat on the big mat"

    def test_accepts_generator(self):
        """Test issues may be passed as a generator."""
        issues = (Issue(start=0, end=1, suggestion="A") for _ in range(1))
        assert apply_all_suggestions("abc", issues) == "Abc"


class TestApplySuggestion:
    """Test cases for single click-to-apply."""

    def test_replaces_one_span(self):
        """Test a single span is replaced."""
        assert apply_suggestion("I has a apple.", Issue(start=2, end=5, suggestion="have")) == "I have a apple."

    def test_empty_suggestion_deletes_span(self):
        """Test an empty suggestion deletes the span."""
        assert apply_suggestion("the the cat", Issue(start=3, end=7)) == "the cat"


class TestAnalysis:
    """Test cases for snapshot-tagged analysis results."""

    def test_meta_and_payload(self):
        """Test meta and response payload."""
        issue = Issue(start=2, end=5, suggestion="have", severity="high")
        analysis = Analysis(text="I has a apple.", language="en", issues=[issue])

        assert analysis.issues == (issue,)
        assert analysis.to_dict() == {
            'issues': [issue.to_dict()],
            'meta': {'language': 'en', 'charCount': 14}
        }

    def test_meta_includes_detected_language(self):
        """Test meta includes the detected language."""
        analysis = Analysis(text="Bonjour", language="fr", detected_language="fr-FR")
        assert analysis.meta == {'language': 'fr', 'charCount': 7, 'detectedLanguage': 'fr-FR'}

    def test_segments_and_apply_on_matching_text(self):
        """Test segments and apply on the analyzed text."""
        text = "I has a apple."
        issue = Issue(start=2, end=5, suggestion="have")
        analysis = Analysis(text=text, language="en", issues=[issue])

        assert _join(analysis.segments(text)) == text
        assert analysis.apply_all(text) == "I have a apple."
        assert analysis.apply(issue, text) == "I have a apple."

    def test_rejects_edited_text(self):
        """Test edited text is rejected."""
        analysis = Analysis(text="I has a apple.", language="en",
                            issues=[Issue(start=2, end=5, suggestion="have")])

        with pytest.raises(StaleAnalysisError):
            analysis.segments("I have a apple.")
        with pytest.raises(StaleAnalysisError):
            analysis.apply_all("I have a apple.")

    def test_rejects_foreign_issue(self):
        """Test an issue from another analysis is rejected."""
        analysis = Analysis(text="abc", language="en", issues=[Issue(start=0, end=1)])
        with pytest.raises(StaleAnalysisError):
            analysis.apply(Issue(start=1, end=2, suggestion="x"))
