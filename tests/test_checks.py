"""Tests for the pure check helpers: status policy, action discovery and form detection.

None of these touch the network: each function takes strings in and returns
plain values, so the tests are straight input/output assertions.
"""

from __future__ import annotations

import pytest

from backend.checker.forms import count_forms
from backend.checker.models import LinkPair, RunSummary
from backend.checker.policy import CMS_EXPECTED, expected_statuses
from backend.checker.resolver import absolutise, extract_hrefs, resolve_actions


BASE = "https://example.org/"
FRONTEND = "https://example.org/blog/"


# ---------------------------------------------------------------------------
# Status policy
# ---------------------------------------------------------------------------

class TestExpectedStatuses:
    def test_error_category(self) -> None:
        assert expected_statuses("error") == {404, 500}

    def test_redirect_category(self) -> None:
        assert expected_statuses("redirect") == {301, 302, 303, 307, 308}

    def test_normal_category(self) -> None:
        assert expected_statuses("normal") == {200}

    def test_unknown_category_defaults_to_normal(self) -> None:
        assert expected_statuses("HolidayPage") == {200}

    def test_cms_always_expects_200(self) -> None:
        assert CMS_EXPECTED == {200}

    @pytest.mark.parametrize("category", ["normal", "error", "redirect", ""])
    def test_never_empty_and_deterministic(self, category: str) -> None:
        first = expected_statuses(category)
        assert first
        assert expected_statuses(category) == first

    def test_link_pair_rejects_empty_expectations(self) -> None:
        with pytest.raises(ValueError):
            LinkPair(cms_url="a", frontend_url="b", expected_statuses=frozenset())


# ---------------------------------------------------------------------------
# Action discovery
# ---------------------------------------------------------------------------

class TestExtractHrefs:
    def test_document_order_and_duplicates_kept(self) -> None:
        html = '<a href="/a">1</a><A HREF=\'/b\'>2</A><a href="/a">3</a>'
        assert extract_hrefs(html) == ["/a", "/b", "/a"]

    def test_malformed_html_tolerated(self) -> None:
        html = '<div><a href="/ok"><p>unclosed <a href="/also-ok"'
        assert extract_hrefs(html) == ["/ok", "/also-ok"]


class TestAbsolutise:
    def test_absolute_kept(self) -> None:
        assert absolutise("https://cdn.example.org/x", FRONTEND, BASE) == "https://cdn.example.org/x"

    def test_root_relative_uses_base(self) -> None:
        assert absolutise("/news/1", FRONTEND, BASE) == "https://example.org/news/1"

    def test_relative_uses_frontend(self) -> None:
        assert absolutise("tag/python", FRONTEND, BASE) == "https://example.org/blog/tag/python"


class TestResolveActions:
    def test_root_relative_match(self) -> None:
        html = '<a href="/news/123">Story</a>'
        assert resolve_actions(html, ["news"], FRONTEND, BASE) == {"news": "https://example.org/news/123"}

    def test_boundary_prevents_partial_name_match(self) -> None:
        html = '<a href="/news/123">Story</a>'
        assert resolve_actions(html, ["newsletter"], FRONTEND, BASE) == {"newsletter": None}

    def test_longer_path_segment_not_matched(self) -> None:
        html = '<a href="/blog/newsletter">Sign up</a>'
        assert resolve_actions(html, ["news"], FRONTEND, BASE) == {"news": None}

    def test_query_and_end_boundaries(self) -> None:
        html = '<a href="/blog/search?q=x">s</a><a href="/blog/archive">a</a>'
        found = resolve_actions(html, ["search", "archive"], FRONTEND, BASE)
        assert found == {
            "search": "https://example.org/blog/search?q=x",
            "archive": "https://example.org/blog/archive",
        }

    def test_case_insensitive(self) -> None:
        html = '<a href="/blog/Tag/python">t</a>'
        assert resolve_actions(html, ["tag"], FRONTEND, BASE)["tag"] == "https://example.org/blog/Tag/python"

    def test_first_match_wins(self) -> None:
        html = '<a href="/blog/tag/first">1</a><a href="/blog/tag/second">2</a>'
        assert resolve_actions(html, ["tag"], FRONTEND, BASE)["tag"] == "https://example.org/blog/tag/first"

    def test_direct_action_fallback(self) -> None:
        found = resolve_actions("<p>no links</p>", ["rss"], FRONTEND, BASE)
        assert found == {"rss": "https://example.org/blog/rss"}

    def test_direct_action_prefers_discovered_link(self) -> None:
        html = '<link rel="alternate" href="/blog/rss?format=atom">'
        found = resolve_actions(html, ["rss"], FRONTEND, BASE)
        assert found == {"rss": "https://example.org/blog/rss?format=atom"}

    def test_direct_action_case_insensitive(self) -> None:
        found = resolve_actions("", ["Index"], FRONTEND, BASE)
        assert found == {"Index": "https://example.org/blog/Index"}

    def test_unresolved_action_is_none(self) -> None:
        found = resolve_actions('<a href="/elsewhere">x</a>', ["edit", "rss"], FRONTEND, BASE)
        assert list(found) == ["edit", "rss"]
        assert found["edit"] is None

    def test_regex_metacharacters_in_action_name(self) -> None:
        html = '<a href="/blog/a.b">x</a>'
        assert resolve_actions(html, ["a+b"], FRONTEND, BASE) == {"a+b": None}


# ---------------------------------------------------------------------------
# Form detection
# ---------------------------------------------------------------------------

class TestCountForms:
    def test_header_form_excluded(self) -> None:
        html = "<header><form></form></header><form class='x'></form>"
        assert count_forms(html) == 1

    def test_footer_form_excluded_across_lines(self) -> None:
        html = "<FOOTER class='site'>\n<form action='/subscribe'>\n</form>\n</FOOTER>"
        assert count_forms(html) == 0

    def test_better_navigator_excluded(self) -> None:
        assert count_forms('<form class="BetterNavigator">') == 0

    def test_counts_each_content_form(self) -> None:
        html = "<main><form id='a'></form><FORM id='b'></FORM></main>"
        assert count_forms(html) == 2

    def test_unterminated_header_not_stripped(self) -> None:
        assert count_forms("<header><form>") == 1

    def test_empty_html(self) -> None:
        assert count_forms("") == 0


# ---------------------------------------------------------------------------
# Summary text
# ---------------------------------------------------------------------------

class TestRunSummary:
    def test_all_passed(self) -> None:
        assert RunSummary(passed=6, failed=0, manual=0).describe() == "✓ 6 passed"

    def test_failed_with_manual(self) -> None:
        text = RunSummary(passed=4, failed=2, manual=1).describe()
        assert text == "✗ 2 failed, 4 passed, 1 manual"

    def test_cancelled(self) -> None:
        text = RunSummary(passed=1, failed=0, manual=0, cancelled=True).describe()
        assert text.startswith("Stopped:")

    def test_unchecked_actions_noted(self) -> None:
        text = RunSummary(passed=2, failed=0, manual=0, unchecked_actions=3).describe()
        assert "(3 actions not checked)" in text
