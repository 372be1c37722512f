"""
Common models shared across the catalog and request resources.

This module defines object metadata, the custom resource envelope and
the Source pointer used to track owned subordinate resources.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ObjectMeta(BaseModel):
    """Subset of Kubernetes object metadata; unknown keys are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field("", description="Object name")
    namespace: str = Field("", description="Object namespace")
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    uid: str | None = None
    generation: int | None = None


class CustomResource(BaseModel):
    """Envelope shared by every custom resource read from a cluster."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    api_version: str = Field("", alias="apiVersion")
    kind: str = ""
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def to_values(self) -> dict[str, Any]:
        """Generic attribute form handed to template renderers."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class Source(BaseModel):
    """
    Ownership-tracking pointer to a subordinate resource.

    Never carries an object body. Two sources are equal when apiVersion,
    kind, name and namespace all match.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    api_version: str = Field("", alias="apiVersion")
    kind: str = ""
    name: str = ""
    namespace: str = ""

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> "Source":
        """Build a Source from a structured resource."""
        metadata = obj.get("metadata") or {}
        return cls(
            api_version=obj.get("apiVersion", ""),
            kind=obj.get("kind", ""),
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
        )

    def to_object(self) -> dict[str, Any]:
        """Bare lookup key as a structured resource."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {"name": self.name, "namespace": self.namespace},
        }

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name} ({self.kind} {self.api_version})"
