"""Input validation shared by the workflow tools."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

import yaml

from argo_workflows_mcp.errors import InvalidInputError

MAX_MANIFEST_BYTES = 1024 * 1024

# Kubernetes object names (RFC 1123 subdomain).
_NAME_RE = re.compile(r"^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$")
_MAX_NAME_LENGTH = 253


def validate_name(name: str, *, what: str = "workflow name") -> str:
    value = (name or "").strip()
    if not value:
        raise InvalidInputError(f"{what} cannot be empty")
    if len(value) > _MAX_NAME_LENGTH or not _NAME_RE.match(value):
        raise InvalidInputError(
            f"invalid {what} {value!r}: must be lowercase alphanumeric, '-' or '.'"
        )
    return value


def resolve_namespace(namespace: str | None, default: str) -> str:
    value = (namespace or "").strip()
    return value or default


def parse_parameters(parameters: Iterable[str] | None) -> list[tuple[str, str]]:
    """Parse `key=value` strings; the value may itself contain '='."""

    parsed: list[tuple[str, str]] = []
    for raw in parameters or ():
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidInputError(f"invalid parameter {raw!r}: expected key=value")
        parsed.append((key, value))
    return parsed


def parse_manifest(manifest: str) -> dict[str, Any]:
    """Parse a Workflow manifest given as YAML (or JSON)."""

    if not manifest or not manifest.strip():
        raise InvalidInputError("manifest cannot be empty")
    if len(manifest.encode("utf-8")) > MAX_MANIFEST_BYTES:
        raise InvalidInputError("manifest exceeds the 1 MiB size limit")

    try:
        data = yaml.safe_load(manifest)
    except yaml.YAMLError as e:
        raise InvalidInputError(f"invalid manifest: {e}") from e

    if not isinstance(data, dict):
        raise InvalidInputError("invalid manifest: expected a YAML mapping")
    kind = data.get("kind")
    if kind != "Workflow":
        raise InvalidInputError(f"invalid manifest: kind must be Workflow, got {kind!r}")
    return data


def apply_overrides(
    manifest: dict[str, Any],
    *,
    namespace: str,
    generate_name: str = "",
    labels: Mapping[str, str] | None = None,
    parameters: list[tuple[str, str]] | None = None,
) -> dict[str, Any]:
    """Apply submit-time overrides to a parsed manifest (mutates and returns it)."""

    metadata = manifest.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
        manifest["metadata"] = metadata
    metadata["namespace"] = namespace

    if generate_name.strip():
        metadata["generateName"] = generate_name.strip()
        metadata.pop("name", None)
    if not metadata.get("name") and not metadata.get("generateName"):
        raise InvalidInputError("manifest must set metadata.name or metadata.generateName")

    if labels:
        existing = metadata.get("labels")
        merged = dict(existing) if isinstance(existing, dict) else {}
        merged.update(labels)
        metadata["labels"] = merged

    if parameters:
        spec = manifest.get("spec")
        if not isinstance(spec, dict):
            spec = {}
            manifest["spec"] = spec
        arguments = spec.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}
            spec["arguments"] = arguments
        current = arguments.get("parameters")
        items: list[dict[str, Any]] = (
            [p for p in current if isinstance(p, dict)] if isinstance(current, list) else []
        )
        for key, value in parameters:
            for item in items:
                if item.get("name") == key:
                    item["value"] = value
                    break
            else:
                items.append({"name": key, "value": value})
        arguments["parameters"] = items

    return manifest
