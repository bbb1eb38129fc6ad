"""Path algebra used by the credential resolver.

This module holds the pure, I/O-free pieces of resolution:

- ``resolve_path``: substitutes ``{placeholder}`` variables into a path template
- ``resolve_env_path``: same, with identifier folding for env-style backends
- ``parse_path_spec``: parses the ``[backend:]path[#json-key]`` DSL
- ``extract_json_key``: pulls one scalar out of a flat JSON object
- ``parse_path_mapping``: parses ``key=value`` path mapping pairs

Example:
    >>> resolve_path("services/{service}/{env}/url", {"service": "auth"})
    'services/auth/{env}/url'
    >>> parse_path_spec("aws:secrets/prod/db#password")
    PathSpec(path='secrets/prod/db', backend='aws', json_key='password')
"""

import re
from collections.abc import Mapping

from sreq.exceptions import NotFoundError, ValidationError, invalid_path_mapping
from sreq.models.domain import PathSpec

# Placeholder names never contain braces; anything else is taken literally.
PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")

# Variables understood by path templates.
TEMPLATE_VARIABLES = ("service", "env", "region", "project", "app")


def resolve_path(template: str, variables: Mapping[str, str]) -> str:
    """Replace ``{name}`` placeholders with values from ``variables``.

    Substitution is a single pass over the template, so substituted values are
    never re-scanned and the result does not depend on the iteration order of
    ``variables``. Placeholders without a matching variable are left verbatim.

    Args:
        template: Path template, e.g. ``"services/{service}/config"``
        variables: Placeholder name to value mapping

    Returns:
        The template with known placeholders substituted
    """

    def replace(match: re.Match[str]) -> str:
        return variables.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(replace, template)


def fold_identifier(value: str) -> str:
    """Convert a value to environment-variable style (``auth-svc.v2`` -> ``AUTH_SVC_V2``)."""
    return value.upper().replace("-", "_").replace(".", "_")


def resolve_env_path(template: str, variables: Mapping[str, str]) -> str:
    """Resolve a template for backends that use environment-style identifiers.

    Values are folded with ``fold_identifier`` and both the lowercase
    (``{service}``) and uppercase (``{SERVICE}``) placeholder forms are
    substituted.

    Args:
        template: Path template, e.g. ``"{SERVICE}_{ENV}_API_KEY"``
        variables: Placeholder name to value mapping

    Returns:
        The template with known placeholders substituted
    """
    folded: dict[str, str] = {}
    for key, value in variables.items():
        folded[key] = fold_identifier(value)
        folded.setdefault(key.upper(), fold_identifier(value))
    return resolve_path(template, folded)


def parse_path_spec(spec: str) -> PathSpec:
    """Parse a ``[backend:]path[#json-key]`` path specification.

    Examples:
        - ``"billing_service/invoice_url"`` -> default backend, no JSON key
        - ``"consul:services/auth/url"`` -> backend ``consul``
        - ``"aws:secrets/prod/db#password"`` -> backend ``aws``, JSON key ``password``

    A colon at index 1 is only treated as a backend separator when it is not
    followed by a path separator, so drive-style paths such as ``C:\\keys``
    stay intact.

    Args:
        spec: Raw path specification

    Returns:
        Parsed PathSpec
    """
    json_key: str | None = None
    backend: str | None = None

    hash_idx = spec.rfind("#")
    if hash_idx != -1:
        json_key = spec[hash_idx + 1 :]
        spec = spec[:hash_idx]

    colon_idx = spec.find(":")
    slash_idx = spec.find("/")
    if colon_idx != -1 and (slash_idx == -1 or colon_idx < slash_idx):
        if colon_idx > 1 or (colon_idx == 1 and len(spec) > 2 and spec[2] not in "\\/"):
            backend = spec[:colon_idx]
            spec = spec[colon_idx + 1 :]

    return PathSpec(path=spec, backend=backend or None, json_key=json_key or None)


def extract_json_key(document: str, key: str) -> str:
    """Extract a scalar value from a flat JSON object without parsing it.

    The scanner finds the first literal occurrence of ``"key"``, skips to the
    next ``:`` and reads either a quoted string (up to the next unescaped
    quote, returned verbatim) or a bare token up to the next ``,`` or ``}``
    (numbers, booleans and ``null``, whitespace trimmed). Nested objects and
    arrays are not supported.

    Args:
        document: JSON text, e.g. ``'{"username": "svc", "password": "x"}'``
        key: Field name to extract

    Returns:
        The field value as a string

    Raises:
        NotFoundError: If the quoted key does not occur in the document
        ValidationError: If the value following the key is malformed
    """
    needle = f'"{key}"'
    idx = document.find(needle)
    if idx == -1:
        raise NotFoundError(f"JSON key '{key}' not found")

    rest = document[idx + len(needle) :]
    colon_idx = rest.find(":")
    if colon_idx == -1:
        raise ValidationError(f"Invalid JSON format after key '{key}'")

    rest = rest[colon_idx + 1 :].strip()
    if not rest:
        raise ValidationError(f"Empty value for JSON key '{key}'")

    if rest[0] == '"':
        pos = 1
        while pos < len(rest):
            char = rest[pos]
            if char == "\\":
                pos += 2
                continue
            if char == '"':
                return rest[1:pos]
            pos += 1
        raise ValidationError(f"Unterminated string value for JSON key '{key}'")

    end = len(rest)
    for delimiter in (",", "}"):
        found = rest.find(delimiter)
        if found != -1:
            end = min(end, found)
    return rest[:end].strip()


def parse_path_mapping(mapping: str) -> tuple[str, str]:
    """Parse one ``field=path-spec`` pair.

    Only the first ``=`` separates field from value, so path specs may
    themselves contain ``=``.

    Raises:
        ValidationError: If there is no ``=`` or either side is empty
    """
    field, sep, value = mapping.partition("=")
    field = field.strip()
    value = value.strip()
    if not sep or not field or not value:
        raise invalid_path_mapping(mapping)
    return field, value


def parse_path_mappings(mappings: list[str] | tuple[str, ...]) -> dict[str, str]:
    """Parse a list of ``field=path-spec`` pairs into a dict (later pairs win)."""
    return dict(parse_path_mapping(mapping) for mapping in mappings)
