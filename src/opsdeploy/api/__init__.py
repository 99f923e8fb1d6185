"""
Appliance API clients.

Public API:
    - OpsManagerClient: ApplianceApi implementation for Ops Manager
"""

from .opsman import OpsManagerClient

__all__ = ["OpsManagerClient"]
