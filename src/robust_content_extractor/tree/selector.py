"""Selection of the highest-scoring content container."""

from typing import Iterator, List, Optional

from .node import ContentNode


def _eligible(root: ContentNode) -> Iterator[ContentNode]:
    # Leaves cannot be containers; the synthetic root itself is a leaf when empty
    for node in root.iter_nodes():
        if not node.is_leaf:
            yield node


def select_top_node(root: ContentNode) -> Optional[ContentNode]:
    """Find the node with children that has the highest score.

    Nodes are visited in document order and a later node only wins with a
    strictly greater score, so ties go to the earlier node.

    Args:
        root: Root of the finished tree

    Returns:
        The best node, or None when no node has children
    """
    best: Optional[ContentNode] = None
    for node in _eligible(root):
        if best is None or node.score > best.score:
            best = node
    return best


def rank_candidates(
    root: ContentNode, limit: Optional[int] = None
) -> List[ContentNode]:
    """Rank every node with children by score, highest first.

    Equal scores keep document order, so the first entry is always the node
    ``select_top_node`` would return.
    """
    ranked = sorted(_eligible(root), key=lambda node: node.score, reverse=True)
    if limit is not None:
        return ranked[:max(limit, 0)]
    return ranked
