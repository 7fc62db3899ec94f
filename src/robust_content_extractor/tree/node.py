"""Content tree node model, builder stack and reconstruction views.

A ``ContentNode`` keeps its own character data in a single buffer. Each child
remembers the length of that buffer at the moment it was attached
(``insert_offset``), which is enough to splice the text and markup of the
subtree back together in document order.
"""

import weakref
from dataclasses import dataclass, field
from html import escape
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Union

from robust_content_extractor.shared.config import EXCLUDED_ELEMENTS, VOID_ELEMENTS

ROOT_TAG = "root"

_VOID_TAGS: FrozenSet[str] = frozenset(VOID_ELEMENTS)


@dataclass(eq=False)
class ContentNode:
    """A single element of the content tree.

    Nodes compare by identity. The parent link is a weak reference: children
    are owned by their parent's ``children`` list, never the other way round.
    A node that outlives its tree reports no parent.
    """

    tag_type: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: List["ContentNode"] = field(default_factory=list)
    score: float = 0.0
    insert_offset: int = 0
    _parent_ref: Optional["weakref.ReferenceType[ContentNode]"] = field(
        default=None, init=False, repr=False
    )

    @property
    def parent(self) -> Optional["ContentNode"]:
        """Get the enclosing node, or None for a root or detached node."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @parent.setter
    def parent(self, node: Optional["ContentNode"]) -> None:
        self._parent_ref = weakref.ref(node) if node is not None else None

    @property
    def is_root(self) -> bool:
        """Check if this is the synthetic document root."""
        return self.tag_type == ROOT_TAG

    @property
    def is_leaf(self) -> bool:
        """Check if this node has no children."""
        return not self.children

    @property
    def class_and_id(self) -> str:
        """Concatenated ``class`` and ``id`` attribute values."""
        return self.attributes.get("class", "") + self.attributes.get("id", "")

    @property
    def depth(self) -> int:
        """Get depth of this node in the tree (root = 0)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def append_child(self, child: "ContentNode") -> None:
        """Attach ``child`` at the current end of this node's text buffer."""
        if not isinstance(child, ContentNode):
            raise TypeError("Child must be a ContentNode instance")

        child.parent = self
        child.insert_offset = len(self.text)
        self.children.append(child)

    def append_text(self, text: str) -> None:
        """Append character data, separated from earlier data by one space."""
        if not text:
            return
        if self.text:
            self.text += " "
        self.text += text

    def remove(self) -> None:
        """Detach this node from its parent.

        The node is located by identity, so an equal-looking sibling is never
        removed by mistake. A node without a parent is left untouched.
        """
        parent = self.parent
        if parent is None:
            return
        for index, sibling in enumerate(parent.children):
            if sibling is self:
                del parent.children[index]
                break
        self.parent = None

    def iter_nodes(self) -> Iterator["ContentNode"]:
        """Iterate over this node and its descendants in document order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    # Queries

    def find_by_type(self, tag_type: str) -> List["ContentNode"]:
        """Find all nodes in this subtree with exactly the given tag."""
        return [node for node in self.iter_nodes() if node.tag_type == tag_type]

    def find_by_class(self, class_name: str) -> List["ContentNode"]:
        """Find all nodes in this subtree whose ``class`` equals ``class_name``."""
        return [
            node for node in self.iter_nodes()
            if node.attributes.get("class") == class_name
        ]

    def link_density(self) -> float:
        """Ratio of hyperlink target length to reconstructed text length.

        Sums the ``href`` length of every ``a`` node in the subtree and divides
        by the text length plus one, so empty nodes do not divide by zero.
        """
        href_length = sum(
            len(node.attributes.get("href", "")) for node in self.find_by_type("a")
        )
        return href_length / (len(self.text_content()) + 1)

    # Reconstruction

    def text_content(self, excluded: Iterable[str] = EXCLUDED_ELEMENTS) -> str:
        """Reconstruct the visible text of this subtree.

        Text segments and child texts are stripped, empty pieces dropped and
        the rest joined with single spaces.

        Args:
            excluded: Tags whose subtrees are skipped

        Returns:
            Text of the subtree without leading or trailing whitespace
        """
        skip = frozenset(excluded)
        pieces = (
            piece.strip() for piece in self._iter_pieces(markup=False, skip=skip)
        )
        return " ".join(piece for piece in pieces if piece)

    def html_content(self, excluded: Iterable[str] = EXCLUDED_ELEMENTS) -> str:
        """Reconstruct escaped markup for this subtree.

        The synthetic root has no markup of its own and renders its first child.

        Args:
            excluded: Tags whose subtrees are skipped

        Returns:
            Markup string, empty for a root without children
        """
        if self.is_root:
            if not self.children:
                return ""
            return self.children[0].html_content(excluded)

        skip = frozenset(excluded)
        return "".join(self._iter_pieces(markup=True, skip=skip))

    def _iter_pieces(self, markup: bool, skip: FrozenSet[str]) -> Iterator[str]:
        # Explicit stack so very deep documents do not exhaust the recursion limit
        stack: List[Union[str, ContentNode]] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                yield item
                continue
            if item is not self and item.tag_type in skip:
                continue
            stack.extend(reversed(item._expand(markup)))

    def _expand(self, markup: bool) -> List[Union[str, "ContentNode"]]:
        """Split the own text at child offsets and interleave the children."""
        if markup and self.tag_type in _VOID_TAGS:
            return [self._open_tag()]

        parts: List[Union[str, ContentNode]] = []
        if markup:
            parts.append(self._open_tag())

        cursor = 0
        for child in self.children:
            offset = min(max(child.insert_offset, cursor), len(self.text))
            segment = self.text[cursor:offset]
            if segment:
                parts.append(escape(segment, quote=False) if markup else segment)
            parts.append(child)
            cursor = offset
        tail = self.text[cursor:]
        if tail:
            parts.append(escape(tail, quote=False) if markup else tail)

        if markup:
            parts.append(f"</{self.tag_type}>")
        return parts

    def _open_tag(self) -> str:
        attrs = "".join(
            f" {name}='{escape(value, quote=True)}'"
            for name, value in self.attributes.items()
        )
        return f"<{self.tag_type}{attrs}>"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the subtree to a dictionary representation."""
        result: Dict[str, Any] = {
            "tag": self.tag_type,
            "score": self.score,
        }
        if self.attributes:
            result["attributes"] = dict(self.attributes)
        if self.text:
            result["text"] = self.text
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


class BuilderStack:
    """Last-in-first-out stack of open elements.

    Popping or peeking an empty stack hands back a fresh sentinel node with an
    empty tag instead of raising, so unbalanced input degrades gracefully.
    """

    def __init__(self) -> None:
        self._items: List[ContentNode] = []

    def push(self, node: ContentNode) -> None:
        self._items.append(node)

    def pop(self) -> ContentNode:
        if not self._items:
            return ContentNode(tag_type="")
        return self._items.pop()

    def peek(self) -> ContentNode:
        if not self._items:
            return ContentNode(tag_type="")
        return self._items[-1]

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
