"""Tests for documentation link extraction and source merging."""

from docs_expert.config.domains import INNGEST_DOMAIN
from docs_expert.pipeline.links import (
    clean_link,
    extract_domain_links,
    extract_links,
    is_url,
    merge_sources,
)


class TestCleanLink:
    def test_strips_trailing_punctuation_and_fragment(self):
        assert (
            clean_link("https://www.inngest.com/docs/guides/concurrency#limits).")
            == "https://www.inngest.com/docs/guides/concurrency"
        )

    def test_absolutizes_relative_links(self):
        assert (
            clean_link("/docs/reference/functions/step-run", "https://www.inngest.com/")
            == "https://www.inngest.com/docs/reference/functions/step-run"
        )

    def test_rejects_fragments_that_are_too_short(self):
        assert clean_link("https://a.io/x") is None


class TestExtractLinks:
    def test_absolute_and_relative_links_in_order(self):
        text = (
            "Start with /docs/learn/inngest-steps, then read "
            "https://www.inngest.com/docs/guides/error-handling."
        )
        links = extract_domain_links(text, INNGEST_DOMAIN)
        assert links == [
            "https://www.inngest.com/docs/learn/inngest-steps",
            "https://www.inngest.com/docs/guides/error-handling",
        ]

    def test_duplicates_are_removed(self):
        text = (
            "See https://www.inngest.com/docs/events and again "
            "https://www.inngest.com/docs/events#sending"
        )
        assert extract_domain_links(text, INNGEST_DOMAIN) == ["https://www.inngest.com/docs/events"]

    def test_foreign_hosts_ignored_for_domain_with_site(self):
        text = "Unrelated: https://example.com/docs/events/payloads"
        assert extract_domain_links(text, INNGEST_DOMAIN) == []

    def test_any_host_without_site_url(self):
        text = "Read https://docs.example.org/getting-started/install now"
        assert extract_links(text) == ["https://docs.example.org/getting-started/install"]

    def test_relative_path_inside_absolute_url_not_double_counted(self):
        text = "https://www.inngest.com/docs/guides/flow-control"
        assert extract_domain_links(text, INNGEST_DOMAIN) == [text]

    def test_empty_text(self):
        assert extract_links("") == []


def test_merge_sources_is_order_stable_union():
    assert merge_sources(["a", "b"], ["b", "c"], ["", "a", "d"]) == ["a", "b", "c", "d"]


def test_is_url():
    assert is_url("https://www.inngest.com/docs")
    assert not is_url("Inngest Documentation: Steps")
