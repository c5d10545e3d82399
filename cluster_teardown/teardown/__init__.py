"""Dependency-ordered cluster teardown engine.

This module discovers the resources of a cluster, plans their deletion in
dependency order and executes the plan with record-and-continue semantics.

Classes:
    ClusterCleaner: Main orchestrator for preview and execution
    ResourceMatcher: Cluster identifier matching per resource kind
    DependencyResolver: Prerequisite step discovery per resource
    TeardownPlanner: Plan construction in fixed kind order
    TeardownExecutor: Plan execution with failure isolation
    TeardownReport: Outcome aggregation
    AuditStorage: Audit log storage and retrieval
"""

from __future__ import annotations

from .audit import AuditStorage
from .cleaner import ClusterCleaner
from .dependency import DependencyResolver
from .executor import TeardownExecutor
from .matcher import ResourceMatcher
from .planner import TeardownPlanner
from .report import TeardownReport, summarize

__all__ = [
    "ClusterCleaner",
    "ResourceMatcher",
    "DependencyResolver",
    "TeardownPlanner",
    "TeardownExecutor",
    "TeardownReport",
    "AuditStorage",
    "summarize",
]
