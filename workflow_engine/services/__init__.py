"""
Service layer for the workflow engine.

This package contains rule and template management, condition evaluation
against trigger payloads, and dispatch of matched rules to their actions.
"""

from .dispatcher import dispatch_trigger, evaluate_rules

__all__ = ["dispatch_trigger", "evaluate_rules"]
