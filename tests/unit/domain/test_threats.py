"""Test injection pattern detection on raw cells."""

import pytest

from finops.domain.imports import ThreatKind, check_dangerous_content
from finops.domain.imports.threats import SQL_REASON, XSS_REASON


class TestSqlDetection:
    """SQL injection patterns are flagged with the SQL reason."""

    @pytest.mark.parametrize(
        "value",
        [
            "' OR 1=1",
            "admin' OR 'a'='a",
            "1 UNION ALL SELECT password FROM users",
            "DROP TABLE users",
            "x; DELETE FROM campaigns",
            "name -- comment",
            "value /* hidden",
        ],
    )
    def test_flags_sql_patterns(self, value):
        verdict = check_dangerous_content(value)

        assert verdict.safe is False
        assert verdict.kind is ThreatKind.SQL
        assert verdict.reason == SQL_REASON

    def test_sql_wins_over_xss(self):
        """A cell carrying both kinds is reported as SQL."""
        verdict = check_dangerous_content("<script>x</script> -- DROP TABLE t")
        assert verdict.kind is ThreatKind.SQL


class TestXssDetection:
    @pytest.mark.parametrize(
        "value",
        [
            "<script>alert(1)</script>",
            '<img src=x onerror="alert(1)">',
            "javascript:alert(1)",
            "data:text/html;base64,AAAA",
            "<iframe src='evil'>",
            "<object data='x'>",
            "<embed src='x'>",
        ],
    )
    def test_flags_xss_patterns(self, value):
        verdict = check_dangerous_content(value)

        assert verdict.safe is False
        assert verdict.kind is ThreatKind.XSS
        assert verdict.reason == XSS_REASON


class TestSafeContent:
    @pytest.mark.parametrize(
        "value",
        ["Black Friday 2026", "R$ 1.234,56", "Campanha - Remarketing", "Dropshipping", "", None],
    )
    def test_ordinary_values_are_safe(self, value):
        verdict = check_dangerous_content(value)

        assert verdict.safe is True
        assert verdict.reason is None
        assert verdict.kind is None
