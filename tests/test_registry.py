from __future__ import annotations

from app.models.oembed.schemas import ProviderEntry
from app.services.oembed.registry import DEFAULT_PROVIDERS, ProviderRegistry, registry


class TestProviderRegistry:
    def test_short_link_matches_youtube_by_pattern(self):
        entry = registry.lookup("https://youtu.be/abc123")
        assert entry is not None
        assert entry.site_id == "youtube.com"
        assert entry.oembed_endpoint == "https://www.youtube.com/oembed"

    def test_host_containing_site_id_matches(self):
        entry = registry.lookup("https://music.youtube.com/channel/xyz")
        assert entry is not None
        assert entry.site_id == "youtube.com"

    def test_explicit_host_is_used_for_site_id_match(self):
        entry = registry.lookup("https://example.org/page", host="player.vimeo.com")
        assert entry is not None
        assert entry.site_id == "vimeo.com"

    def test_unknown_site_has_no_match(self):
        assert registry.lookup("https://example.org/post") is None

    def test_pattern_match_is_case_sensitive(self):
        # Host comparison sees the lowercased host, the raw string does not.
        assert registry.lookup("https://example.org/?ref=YOUTU.BE/x") is None
        assert registry.lookup("https://example.org/?ref=youtu.be/x") is not None

    def test_first_registered_entry_wins(self):
        first = ProviderEntry(
            site_id="first.test",
            oembed_endpoint="https://first.test/oembed",
            url_patterns=("shared/",),
        )
        second = ProviderEntry(
            site_id="second.test",
            oembed_endpoint="https://second.test/oembed",
            url_patterns=("shared/",),
        )
        assert ProviderRegistry([first, second]).lookup("https://x.org/shared/1") is first
        assert ProviderRegistry([second, first]).lookup("https://x.org/shared/1") is second

    def test_twitter_link_matches_x(self):
        entry = registry.lookup("https://twitter.com/user/status/1")
        assert entry is not None
        assert entry.site_id == "x.com"

    def test_default_table_order_is_stable(self):
        assert [e.site_id for e in registry] == [e.site_id for e in DEFAULT_PROVIDERS]
        assert len(registry) == 9
        assert all(e.oembed_endpoint for e in registry)
