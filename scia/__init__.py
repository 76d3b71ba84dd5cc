"""
SCIA - Smart cloud infrastructure advisor.

This package decides which deployment topology (VM, Kubernetes or serverless)
fits an analyzed application and lets users refine the resulting plan with
natural language, backed by pluggable LLM providers.
"""

__version__ = "0.1.0"
__author__ = "SCIA"
