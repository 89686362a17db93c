# Cluster assignment module

from .cluster_rules import (
    RULE_TABLE,
    ClusterRule,
    assign_cluster,
    explain_cluster,
    infer_cluster_from_stack,
)

__all__ = [
    "ClusterRule",
    "RULE_TABLE",
    "assign_cluster",
    "explain_cluster",
    "infer_cluster_from_stack",
]
