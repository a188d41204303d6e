"""CLI command modules.

- operator: resolve, render and reconcile one APIManager instance
"""

from .operator import register as register_operator_commands

__all__ = ["register_operator_commands"]
