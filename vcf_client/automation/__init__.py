"""
Automation backend support: deployments, projects, supervisor resources and
VM power management.
"""

from .service import (
    STANDALONE_POWER_STATES,
    VM_POWER_ACTIONS,
    AutomationService,
    standalone_vm_path,
)

__all__ = [
    "AutomationService",
    "STANDALONE_POWER_STATES",
    "VM_POWER_ACTIONS",
    "standalone_vm_path",
]
