"""
Core domain-agnostic components for kubeapply.

This package contains configuration, errors, the document/instruction/result
schemas, outcome reporting and the instruction runner.
"""

__all__ = []
