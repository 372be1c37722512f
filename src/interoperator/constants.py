"""
Constants used throughout the interoperator.

This module defines all constant values used by the resource engine including:
- Ownership annotation keys stamped on rendered resources
- Template actions and well-known rendered file names
- Custom resource coordinates for the broker catalog and requests
- Default configuration values
"""

# Ownership annotations
# Native ownerReferences cannot cross clusters, so ownership is kept in annotations.
OWNER_NAME_KEY = "interoperator.servicefabrik.io/ownername"
OWNER_NAMESPACE_KEY = "interoperator.servicefabrik.io/ownernamespace"
OWNER_KIND_KEY = "interoperator.servicefabrik.io/ownerkind"
OWNER_API_VERSION_KEY = "interoperator.servicefabrik.io/ownerapiversion"

# Template actions
PROVISION_ACTION = "provision"
BIND_ACTION = "bind"
PROPERTIES_ACTION = "properties"
SOURCES_ACTION = "sources"
STATUS_ACTION = "status"

# Custom resource coordinates
OSB_GROUP = "osb.servicefabrik.io"
OSB_VERSION = "v1alpha1"
OSB_API_VERSION = f"{OSB_GROUP}/{OSB_VERSION}"
SERVICE_KIND = "SFService"
PLAN_KIND = "SFPlan"
INSTANCE_KIND = "SFServiceInstance"
BINDING_KIND = "SFServiceBinding"

# Catalog labels maintained by the plan controller
SERVICE_ID_LABEL = "serviceId"
PLAN_ID_LABEL = "planId"

# Rendered file names preferred by the status pipeline
SOURCES_FILE_NAME = "sources.yaml"
STATUS_FILE_NAME = "status.yaml"

# Renderer type names
RENDERER_HELM = "helm"
RENDERER_JINJA = "jinja2"

# Special-case delete marker
DELETE_STATE = "delete"

# Default configuration values
DEFAULT_CONTROL_NAMESPACE = "default"
DEFAULT_IGNORE_FILE_SUFFIXES = ("NOTES.txt",)
DEFAULT_GRACEFUL_DELETE_API_VERSIONS = (
    "deployment.servicefabrik.io/v1alpha1",
    "bind.servicefabrik.io/v1alpha1",
)
DEFAULT_HELM_BINARY = "helm"
DEFAULT_HELM_TIMEOUT = 60
DEFAULT_RELEASE_REVISION = 1
