"""
Error handling module for the interoperator.

This module provides an error hierarchy that integrates with kopf
and distinguishes "nothing to do" (not found) from real failures.
"""

from .operator_errors import (
    BindingNotFoundError,
    ConfigurationError,
    InstanceNotFoundError,
    KubernetesAPIError,
    NotFoundError,
    OperatorError,
    PlanNotFoundError,
    RenderError,
    RendererNotImplementedError,
    ResourceNotFoundError,
    ResourceTypeError,
    ServiceNotFoundError,
    TemplateNotFoundError,
)

__all__ = [
    "OperatorError",
    "NotFoundError",
    "InstanceNotFoundError",
    "BindingNotFoundError",
    "ServiceNotFoundError",
    "PlanNotFoundError",
    "TemplateNotFoundError",
    "ResourceNotFoundError",
    "RenderError",
    "ResourceTypeError",
    "RendererNotImplementedError",
    "KubernetesAPIError",
    "ConfigurationError",
]
