"""
Main Modules - startup and supervision components

Modules:
- config_validator: configuration schema, type and range checks
- task_supervisor: restart-on-crash supervision of long-lived tasks
"""

from .config_validator import ConfigValidator
from .task_supervisor import TaskSupervisor

__all__ = ['ConfigValidator', 'TaskSupervisor']
