"""Content tree building, scoring and selection.

This module turns a token stream into a tree of content nodes, scoring
elements as they open and close and detaching boilerplate as soon as it is
recognised.

Key Components:
    ContentTreeBuilder: Single-pass builder consuming a token stream
    ContentNode: Tree node with text buffer, score and reconstruction views
    ScoringEngine: Tag weights, class/id keywords and content density
    PruningPolicy: Boilerplate classification of closed elements
    select_top_node: Highest-scoring node with children
    BuildResult: Tree root together with diagnostics and metrics
"""

from .builder import BuildResult, ContentTreeBuilder
from .node import ROOT_TAG, BuilderStack, ContentNode
from .pruning import PruningPolicy
from .scoring import ScoringEngine
from .selector import rank_candidates, select_top_node

__all__ = [
    "BuildResult",
    "BuilderStack",
    "ContentNode",
    "ContentTreeBuilder",
    "PruningPolicy",
    "ROOT_TAG",
    "ScoringEngine",
    "rank_candidates",
    "select_top_node",
]
