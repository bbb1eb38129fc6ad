"""Tests for the path template algebra."""

import pytest

from sreq.exceptions import NotFoundError, ValidationError
from sreq.models.domain import PathSpec
from sreq.paths import (
    extract_json_key,
    fold_identifier,
    parse_path_mapping,
    parse_path_mappings,
    parse_path_spec,
    resolve_env_path,
    resolve_path,
)


class TestResolvePath:
    """Test placeholder substitution."""

    def test_substitutes_all_known_placeholders(self):
        """Test every provided variable is substituted."""
        result = resolve_path(
            "{project}/{service}/{env}/{region}/{app}",
            {"project": "acme", "service": "auth", "env": "prod", "region": "eu", "app": "web"},
        )

        assert result == "acme/auth/prod/eu/web"

    def test_unknown_placeholders_left_verbatim(self):
        """Test placeholders without a variable are untouched."""
        assert resolve_path("{service}/{env}/url", {"service": "auth"}) == "auth/{env}/url"

    def test_repeated_placeholder(self):
        """Test every occurrence of a placeholder is replaced."""
        assert resolve_path("{env}-{env}", {"env": "dev"}) == "dev-dev"

    def test_order_independent(self):
        """Test the result does not depend on variable order."""
        forward = resolve_path("{a}/{b}", {"a": "x", "b": "y"})
        backward = resolve_path("{a}/{b}", {"b": "y", "a": "x"})

        assert forward == backward == "x/y"

    def test_substituted_values_are_not_rescanned(self):
        """Test a value that looks like a placeholder is inserted literally."""
        assert resolve_path("{a}/{b}", {"a": "{b}", "b": "y"}) == "{b}/y"

    def test_idempotent(self):
        """Test repeated application yields identical output."""
        variables = {"service": "auth"}
        once = resolve_path("services/{service}/{env}", variables)

        assert resolve_path(once, variables) == once

    def test_no_placeholders(self):
        """Test a template without placeholders is returned unchanged."""
        assert resolve_path("static/path", {"service": "auth"}) == "static/path"


class TestResolveEnvPath:
    """Test placeholder substitution with identifier folding."""

    def test_fold_identifier(self):
        """Test upper-casing and separator folding."""
        assert fold_identifier("auth-svc.v2") == "AUTH_SVC_V2"

    def test_lowercase_and_uppercase_placeholders(self):
        """Test both {k} and {K} forms receive the folded value."""
        result = resolve_env_path("{SERVICE}_{env}_API_KEY", {"service": "auth-svc", "env": "prod"})

        assert result == "AUTH_SVC_PROD_API_KEY"

    def test_unknown_placeholder_kept(self):
        """Test unknown placeholders survive folding."""
        assert resolve_env_path("{SERVICE}_{REGION}", {"service": "auth"}) == "AUTH_{REGION}"


class TestParsePathSpec:
    """Test the [backend:]path[#json-key] parser."""

    def test_bare_path(self):
        """Test a bare path uses the default backend."""
        assert parse_path_spec("services/auth/url") == PathSpec(path="services/auth/url")

    def test_backend_path_and_json_key(self):
        """Test all three parts are recognised."""
        spec = parse_path_spec("aws:secrets/prod/db#password")

        assert spec == PathSpec(path="secrets/prod/db", backend="aws", json_key="password")

    def test_backend_without_json_key(self):
        """Test backend prefix on its own."""
        assert parse_path_spec("consul:services/auth/url") == PathSpec(
            path="services/auth/url", backend="consul"
        )

    def test_json_key_uses_last_hash(self):
        """Test only the last # separates the JSON key."""
        spec = parse_path_spec("aws:team#1/creds#password")

        assert spec.path == "team#1/creds"
        assert spec.json_key == "password"

    def test_colon_after_slash_is_part_of_path(self):
        """Test a colon after the first slash is not a backend separator."""
        spec = parse_path_spec("services/auth:8080/url")

        assert spec.backend is None
        assert spec.path == "services/auth:8080/url"

    def test_drive_letter_with_backslash(self):
        """Test drive-style paths are not split."""
        spec = parse_path_spec("C:\\keys\\db")

        assert spec.backend is None
        assert spec.path == "C:\\keys\\db"

    def test_drive_letter_with_slash(self):
        """Test drive-style paths with forward slashes are not split."""
        assert parse_path_spec("C:/keys/db").backend is None

    def test_single_letter_backend(self):
        """Test a single-letter backend not followed by a separator."""
        assert parse_path_spec("a:key") == PathSpec(path="key", backend="a")

    def test_env_style_key(self):
        """Test env backend with an upper-case variable name."""
        assert parse_path_spec("env:BILLING_API_KEY") == PathSpec(path="BILLING_API_KEY", backend="env")

    def test_empty_json_key_is_absent(self):
        """Test a trailing # yields no JSON key."""
        assert parse_path_spec("services/auth#").json_key is None


class TestExtractJsonKey:
    """Test the flat JSON scalar scanner."""

    def test_string_value_with_whitespace(self):
        """Test whitespace around the colon is tolerated."""
        assert extract_json_key('{ "password" : "secret123" }', "password") == "secret123"

    def test_number_value(self):
        """Test bare numbers are returned as text."""
        assert extract_json_key('{"port":5432}', "port") == "5432"

    def test_boolean_and_null(self):
        """Test bare literals are returned trimmed."""
        document = '{"enabled": true , "owner": null}'

        assert extract_json_key(document, "enabled") == "true"
        assert extract_json_key(document, "owner") == "null"

    def test_second_field(self):
        """Test extraction of a later field."""
        document = '{"username": "svc", "password": "p@ss,word"}'

        assert extract_json_key(document, "password") == "p@ss,word"

    def test_escaped_quote_kept_verbatim(self):
        """Test an escaped quote does not end the string."""
        assert extract_json_key('{"a": "x\\"y"}', "a") == 'x\\"y'

    def test_missing_key(self):
        """Test a missing key raises NotFoundError."""
        with pytest.raises(NotFoundError):
            extract_json_key("{}", "x")

    def test_missing_colon(self):
        """Test a key without a value is malformed."""
        with pytest.raises(ValidationError):
            extract_json_key('{"a"}', "a")

    def test_empty_value(self):
        """Test nothing after the colon is malformed."""
        with pytest.raises(ValidationError):
            extract_json_key('{"a":', "a")

    def test_unterminated_string(self):
        """Test an unterminated string is malformed."""
        with pytest.raises(ValidationError, match="Unterminated"):
            extract_json_key('{"a": "abc', "a")


class TestParsePathMapping:
    """Test key=value mapping parsing."""

    def test_valid_mapping(self):
        """Test a well-formed mapping."""
        assert parse_path_mapping("base_url=services/auth/url") == ("base_url", "services/auth/url")

    def test_value_may_contain_equals(self):
        """Test only the first = separates key and value."""
        assert parse_path_mapping("token=aws:a=b#c") == ("token", "aws:a=b#c")

    @pytest.mark.parametrize("mapping", ["base_url", "=services/url", "base_url=", " = "])
    def test_malformed_mapping(self, mapping):
        """Test malformed mappings fail validation."""
        with pytest.raises(ValidationError, match="Invalid path mapping"):
            parse_path_mapping(mapping)

    def test_parse_many(self):
        """Test a list of mappings becomes a dict."""
        result = parse_path_mappings(["base_url=a", "password=aws:b#password"])

        assert result == {"base_url": "a", "password": "aws:b#password"}
