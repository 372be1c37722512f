"""
Interoperator error hierarchy with categorization and retry logic.

This module defines the error types used throughout the resource engine,
providing clear categorization and integration with kopf's retry mechanisms.
The engine never retries by itself; the caller converts errors with
``as_kopf_error`` and lets the work queue back off.
"""

import kopf


class OperatorError(Exception):
    """
    Base error class for all interoperator exceptions.

    Provides categorization, retry behavior, and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: int = 30,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize operator error.

        Args:
            message: Human-readable error description
            category: Error category (not_found, render, type, api, configuration)
            retryable: Whether kopf should retry this operation
            delay: Suggested retry delay in seconds
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self):
        """Convert to appropriate kopf exception type."""
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        else:
            return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class NotFoundError(OperatorError):
    """A referenced object does not exist."""

    def __init__(
        self,
        kind: str,
        name: str,
        cause: Exception | None = None,
        retryable: bool = False,
        user_action: str | None = None,
    ):
        super().__init__(
            message=f"{kind} '{name}' not found",
            category="not_found",
            retryable=retryable,
            user_action=user_action,
            cause=cause,
        )
        self.kind = kind
        self.name = name


class InstanceNotFoundError(NotFoundError):
    """Service instance request is absent from the source cluster."""

    def __init__(self, instance_id: str, cause: Exception | None = None):
        super().__init__("SFServiceInstance", instance_id, cause=cause)


class BindingNotFoundError(NotFoundError):
    """Service binding request is absent from the source cluster."""

    def __init__(self, binding_id: str, cause: Exception | None = None):
        super().__init__("SFServiceBinding", binding_id, cause=cause)


class ServiceNotFoundError(NotFoundError):
    """No catalog service with the requested id."""

    def __init__(self, service_id: str, cause: Exception | None = None):
        super().__init__(
            "SFService",
            service_id,
            cause=cause,
            user_action="Register the service in the control namespace",
        )


class PlanNotFoundError(NotFoundError):
    """No catalog plan with the requested id."""

    def __init__(self, plan_id: str, cause: Exception | None = None):
        super().__init__(
            "SFPlan",
            plan_id,
            cause=cause,
            user_action="Register the plan in the control namespace",
        )


class TemplateNotFoundError(NotFoundError):
    """Plan has no template for the requested action."""

    def __init__(self, action: str, plan_id: str = ""):
        super().__init__(
            "Template",
            f"{plan_id}/{action}" if plan_id else action,
            user_action=f"Add a template with action '{action}' to the plan",
        )
        self.action = action


class ResourceNotFoundError(NotFoundError):
    """Live object is absent from a cluster (HTTP 404)."""

    def __init__(
        self,
        kind: str,
        name: str,
        namespace: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            kind, f"{namespace}/{name}" if namespace else name, cause=cause
        )
        self.namespace = namespace


class RenderError(OperatorError):
    """Template engine failure, wraps the underlying cause."""

    def __init__(self, message: str, cause: Exception | None = None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(
            message=message,
            category="render",
            retryable=True,
            delay=60,
            user_action="Check the plan template and its rendered output",
            cause=cause,
        )


class ResourceTypeError(OperatorError, TypeError):
    """A document or object has an unexpected shape."""

    def __init__(self, message: str):
        super().__init__(message=message, category="type", retryable=False)


class RendererNotImplementedError(OperatorError, NotImplementedError):
    """Template declares a renderer type that is not known."""

    def __init__(self, renderer_type: str):
        super().__init__(
            message=f"unable to create renderer for type {renderer_type}. not implemented",
            category="configuration",
            retryable=False,
            user_action="Use one of the supported template types: helm, jinja2",
        )
        self.renderer_type = renderer_type


class KubernetesAPIError(OperatorError):
    """Error communicating with a Kubernetes API server."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status: int | None = None,
        retryable: bool = True,
        cause: Exception | None = None,
    ):
        if reason:
            message = f"{message} (reason: {reason})"

        # Some K8s errors are not retryable
        non_retryable_reasons = {"Forbidden", "Unauthorized", "Invalid"}
        if reason in non_retryable_reasons:
            retryable = False

        super().__init__(
            message=f"Kubernetes API error: {message}",
            category="api",
            retryable=retryable,
            delay=60,
            user_action="Check RBAC permissions and cluster connectivity",
            cause=cause,
        )
        self.reason = reason
        self.status = status


class ConfigurationError(OperatorError):
    """Error in interoperator or cluster configuration."""

    def __init__(
        self, message: str, retryable: bool = False, user_action: str | None = None
    ):
        super().__init__(
            message=message,
            category="configuration",
            retryable=retryable,
            user_action=user_action or "Review interoperator configuration",
        )

