"""
Helpers for generic, untyped resource trees.

Rendered manifests and live objects are handled as nested dicts. This
module converts rendered text into those trees and merges a desired tree
into a live one without touching keys the desired tree does not carry.
"""

import copy
from typing import Any

import yaml

from ..errors import ResourceTypeError


def string_to_resources(content: str) -> list[dict[str, Any]]:
    """
    Parse rendered YAML into structured resources.

    One file may hold several documents separated by ``---``. Empty
    documents are skipped.

    Args:
        content: Raw rendered file content

    Returns:
        List of structured resources in document order

    Raises:
        ResourceTypeError: If the content is not YAML or a document is not a mapping
    """
    try:
        documents = list(yaml.safe_load_all(content))
    except yaml.YAMLError as e:
        raise ResourceTypeError(f"rendered content is not valid YAML: {e}") from e

    resources = []
    for document in documents:
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ResourceTypeError(
                f"rendered document must be a mapping, got {type(document).__name__}"
            )
        resources.append(document)
    return resources


def _merge(target: dict[str, Any], desired: dict[str, Any]) -> None:
    for key, value in desired.items():
        current = target.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            _merge(current, value)
        else:
            # Scalars and lists are replaced wholesale
            target[key] = copy.deepcopy(value)


def deep_update(
    found: dict[str, Any], expected: dict[str, Any]
) -> tuple[dict[str, Any], bool]:
    """
    Merge the desired state into the live state.

    Every key of ``expected`` is merged into ``found``: nested mappings key by
    key, scalars and lists replaced. Keys only present in ``found`` (status,
    server-side defaults, resourceVersion, ...) are preserved. Neither input is
    mutated.

    Args:
        found: Live object read from the cluster
        expected: Desired object rendered from a template

    Returns:
        Tuple of (merged object, whether it differs from ``found``)
    """
    merged = copy.deepcopy(found)
    _merge(merged, expected)
    return merged, merged != found
