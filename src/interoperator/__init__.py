"""
interoperator - provisions and manages downstream resources for a
service broker.

Renders plan templates into concrete resources, reconciles them against a
(possibly remote) target cluster, tracks ownership through annotations
and computes the observed status of service instances and bindings.
"""

__version__ = "0.1.0"
