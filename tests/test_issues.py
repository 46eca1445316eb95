# tests/test_issues.py
"""
Tests for the Issue model and IssueList compaction.
"""

import json

from erris.issues import (
    ASSERT_MESSAGE,
    COMPARE_MESSAGE,
    Issue,
    IssueList,
    SourceLocation,
    make_issue,
)


def at(line, message=COMPARE_MESSAGE, file="a.go"):
    return make_issue(message, SourceLocation(file, line, 2))


class TestIssue:

    def test_messages_are_literal(self):
        assert COMPARE_MESSAGE == "use errors.Is to compare an error"
        assert ASSERT_MESSAGE == "use errors.As to assert an error"

    def test_str(self):
        assert str(at(9)) == "a.go:9:2\tuse errors.Is to compare an error"

    def test_location_without_column(self):
        assert str(SourceLocation("a.go", 4)) == "a.go:4"

    def test_end_does_not_affect_equality(self):
        a = make_issue(COMPARE_MESSAGE, SourceLocation("a.go", 1, 1), SourceLocation("a.go", 1, 9))
        b = make_issue(COMPARE_MESSAGE, SourceLocation("a.go", 1, 1))
        assert a == b
        assert hash(a) == hash(b)

    def test_to_json(self):
        data = json.loads(at(9, ASSERT_MESSAGE).to_json_str())
        assert data == {"file": "a.go", "line": 9, "column": 2, "message": ASSERT_MESSAGE}


class TestIssueList:

    def test_is_a_tuple(self):
        issues = IssueList([at(1), at(2)])
        assert isinstance(issues, tuple)
        assert len(issues) == 2

    def test_concatenation_keeps_type(self):
        combined = IssueList([at(1)]) + IssueList([at(2)])
        assert isinstance(combined, IssueList)
        assert list(combined) == [at(1), at(2)]

    def test_str(self):
        assert str(IssueList([at(1)])) == "erris issues found"

    def test_compact_collapses_adjacent_duplicates(self):
        issues = IssueList([at(1), at(1), at(1), at(2), at(2)])
        assert list(issues.compact()) == [at(1), at(2)]

    def test_compact_keeps_non_adjacent_duplicates(self):
        issues = IssueList([at(1), at(2), at(1)])
        assert list(issues.compact()) == [at(1), at(2), at(1)]

    def test_same_message_different_location_is_kept(self):
        issues = IssueList([at(1), at(1, file="b.go")])
        assert len(issues.compact()) == 2

    def test_compact_returns_new_list(self):
        issues = IssueList([at(1), at(1)])
        compacted = issues.compact()
        assert compacted is not issues
        assert len(issues) == 2

    def test_compact_empty(self):
        assert IssueList().compact() == IssueList()
