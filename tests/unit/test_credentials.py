"""Tests for cache-first credential lookup."""

from unittest.mock import Mock

import pytest

from sreq.cache.cache import CredentialCache
from sreq.credentials import get_credentials
from sreq.exceptions import EncryptionError, NotFoundError, ValidationError
from sreq.models.domain import ResolvedCredentials
from sreq.resolver import CredentialResolver, ResolveOptions


class TestGetCredentials:
    """Test get_credentials cache handling."""

    @pytest.fixture
    def options(self):
        """Options for the billing service in dev."""
        return ResolveOptions(service="billing", env="dev")

    @pytest.fixture
    def resolver(self, sample_credentials):
        """Resolver mock returning sample credentials."""
        resolver = Mock(spec=CredentialResolver)
        resolver.resolve.return_value = sample_credentials
        return resolver

    @pytest.fixture
    def cache(self, config_dir):
        """Real cache under a temporary config dir."""
        return CredentialCache(config_dir)

    def test_miss_resolves_and_caches(self, resolver, options, cache, sample_credentials):
        """Test a miss resolves and writes back."""
        result = get_credentials(resolver, options, cache=cache)

        assert result == sample_credentials
        resolver.resolve.assert_called_once_with(options)
        assert cache.get("billing", "dev") == sample_credentials

    def test_hit_skips_resolution(self, resolver, options, cache, sample_credentials):
        """Test a hit never contacts the backends."""
        cache.set("billing", "dev", sample_credentials)

        assert get_credentials(resolver, options, cache=cache) == sample_credentials
        resolver.resolve.assert_not_called()

    def test_no_cache_bypasses_reads_and_writes(self, resolver, options, cache):
        """Test no_cache always resolves and stores nothing."""
        cached = ResolvedCredentials(base_url="https://stale")
        cache.set("billing", "dev", cached)

        result = get_credentials(resolver, options, cache=cache, no_cache=True)

        assert result.base_url == "https://billing.internal"
        assert cache.get("billing", "dev") == cached

    def test_ci_disables_cache(self, resolver, options, cache, monkeypatch):
        """Test CI=true behaves like no_cache."""
        monkeypatch.setenv("CI", "true")

        get_credentials(resolver, options, cache=cache)

        assert cache.get("billing", "dev") is None

    def test_without_cache(self, resolver, options, sample_credentials):
        """Test resolution works with no cache at all."""
        assert get_credentials(resolver, options) == sample_credentials

    def test_offline_hit(self, resolver, options, cache, sample_credentials):
        """Test offline mode serves cached credentials."""
        cache.set("billing", "dev", sample_credentials)

        assert get_credentials(resolver, options, cache=cache, offline=True) == sample_credentials

    def test_offline_miss(self, resolver, options, cache):
        """Test offline mode without a cached entry fails."""
        with pytest.raises(NotFoundError, match="offline"):
            get_credentials(resolver, options, cache=cache, offline=True)

        resolver.resolve.assert_not_called()

    def test_cache_write_failure_is_not_fatal(self, resolver, options, sample_credentials):
        """Test a failing cache write still returns the credentials."""
        cache = Mock(spec=CredentialCache)
        cache.get.return_value = None
        cache.set.side_effect = EncryptionError("disk full")

        assert get_credentials(resolver, options, cache=cache) == sample_credentials

    def test_require_base_url(self, resolver, options):
        """Test a missing base_url can be enforced."""
        resolver.resolve.return_value = ResolvedCredentials(api_key="k")

        with pytest.raises(ValidationError, match="Could not resolve base_url"):
            get_credentials(resolver, options, require_base_url=True)
