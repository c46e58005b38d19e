"""
Source graph data structures and algorithms.

This module provides the in-memory project graph:

Data Structures:
    - SourceGraph: File nodes and resolved import edges, adjacency lists

Building:
    - GraphBuilder: discovery, role classification, two-pass import resolution,
      incremental add/change/remove
    - RoleClassifier: directory-to-role mapping, explicit or content-detected

Algorithms:
    - analysis: blast radius of an edit, import cycle detection
"""

from contractdrift.core.graph.analysis import affected_files, find_cycles
from contractdrift.core.graph.base import SourceGraph
from contractdrift.core.graph.builder import GraphBuilder, match_glob
from contractdrift.core.graph.roles import MIN_ROLE_SCORE, RoleClassifier

__all__ = [
    "MIN_ROLE_SCORE",
    "GraphBuilder",
    "RoleClassifier",
    "SourceGraph",
    "affected_files",
    "find_cycles",
    "match_glob",
]
