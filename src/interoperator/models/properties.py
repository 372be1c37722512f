"""
Observed status and status-source documents.

The sources template renders a mapping from logical name to a resource
reference; the status template renders the observed status of the
request, one entry per lifecycle operation.
"""

from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..errors import ResourceTypeError
from .common import Source


class GenericStatus(BaseModel):
    """State reported for one lifecycle operation."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    state: str = ""
    error: str | None = None
    response: Any = None
    dashboard_url: str | None = Field(None, alias="dashboardUrl")


class Status(BaseModel):
    """Observed status rendered by a plan's status template."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    provision: GenericStatus = Field(default_factory=GenericStatus)
    bind: GenericStatus = Field(default_factory=GenericStatus)
    unbind: GenericStatus = Field(default_factory=GenericStatus)
    deprovision: GenericStatus = Field(default_factory=GenericStatus)


def _load_mapping(text: str, what: str) -> dict[str, Any]:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ResourceTypeError(f"{what} document is not valid YAML: {e}") from e
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ResourceTypeError(
            f"{what} document must be a mapping, got {type(document).__name__}"
        )
    return document


def parse_status(text: str) -> Status:
    """
    Parse a rendered status document.

    Raises:
        ResourceTypeError: If the document is not a mapping of status entries
    """
    document = _load_mapping(text, "status")
    try:
        return Status.model_validate(document)
    except ValidationError as e:
        raise ResourceTypeError(f"invalid status document: {e}") from e


def parse_sources(text: str) -> dict[str, Source]:
    """
    Parse a rendered sources document into logical name -> Source.

    Raises:
        ResourceTypeError: If an entry is not a resource reference
    """
    document = _load_mapping(text, "sources")
    sources: dict[str, Source] = {}
    for key, value in document.items():
        if not isinstance(value, dict):
            raise ResourceTypeError(f"source '{key}' must be a mapping")
        try:
            sources[str(key)] = Source.model_validate(value)
        except ValidationError as e:
            raise ResourceTypeError(f"invalid source '{key}': {e}") from e
    return sources
