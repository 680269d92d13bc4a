"""
Document model for MLT edit-decision lists.

An MLT document is one mutable tree of nodes (tractors, multitracks, tracks,
playlists, entries, producers, transitions, filters, blanks). Nodes refer to
each other by id through the ``producer`` attribute; MltDocument keeps an id
index so those references resolve in constant time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .errors import DuplicateIdError, UnresolvedReferenceError

# ============================================================================
# ENUMS
# ============================================================================


class NodeKind(Enum):
    """Element kinds of the MLT schema."""
    MLT = "mlt"
    TRACTOR = "tractor"
    MULTITRACK = "multitrack"
    TRACK = "track"
    PLAYLIST = "playlist"
    ENTRY = "entry"
    PRODUCER = "producer"
    PROPERTY = "property"
    TRANSITION = "transition"
    FILTER = "filter"
    BLANK = "blank"
    OTHER = "other"  # Anything else (profile, consumer, ...), kept verbatim

    @classmethod
    def from_tag(cls, tag: str) -> 'NodeKind':
        try:
            return cls(tag)
        except ValueError:
            return cls.OTHER


# ============================================================================
# NODE
# ============================================================================

@dataclass(eq=False)
class Node:
    """
    One element of the document tree.

    Equality is identity: two identical entries in the same playlist are
    still different nodes. Use same_structure() for structural comparison.
    """
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    children: List['Node'] = field(default_factory=list)
    parent: Optional['Node'] = field(default=None, repr=False)

    @property
    def kind(self) -> NodeKind:
        return NodeKind.from_tag(self.tag)

    @property
    def id(self) -> Optional[str]:
        return self.attrs.get('id')

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)

    def set(self, name: str, value) -> None:
        self.attrs[name] = str(value)

    def delete(self, name: str) -> None:
        self.attrs.pop(name, None)

    def elements(self, tag: Optional[str] = None) -> List['Node']:
        """Direct children, optionally filtered by tag."""
        if tag is None:
            return list(self.children)
        return [child for child in self.children if child.tag == tag]

    def iter(self, tag: Optional[str] = None) -> Iterator['Node']:
        """Pre-order walk over this node and its descendants."""
        if tag is None or self.tag == tag:
            yield self
        for child in self.children:
            yield from child.iter(tag)

    def find(self, tag: str) -> Optional['Node']:
        """First descendant (excluding self) with the given tag."""
        for child in self.children:
            for node in child.iter(tag):
                return node
        return None

    def index_in_parent(self) -> int:
        if self.parent is None:
            raise ValueError(f"{self.describe()} is not attached to a parent")
        for i, sibling in enumerate(self.parent.children):
            if sibling is self:
                return i
        raise ValueError(f"{self.describe()} is missing from its parent")

    def get_property(self, name: str) -> Optional[str]:
        """Text of the first <property name="..."> child, if any."""
        for prop in self.elements('property'):
            if prop.get('name') == name:
                return prop.text
        return None

    def clone(self) -> 'Node':
        """Deep structural copy, detached from any parent."""
        copy = Node(tag=self.tag, attrs=dict(self.attrs), text=self.text)
        for child in self.children:
            child_copy = child.clone()
            child_copy.parent = copy
            copy.children.append(child_copy)
        return copy

    def same_structure(self, other: 'Node') -> bool:
        """Structural equality: tag, attributes, text and children."""
        if not isinstance(other, Node):
            return False
        if (self.tag, self.attrs, self.text) != (other.tag, other.attrs, other.text):
            return False
        if len(self.children) != len(other.children):
            return False
        return all(a.same_structure(b) for a, b in zip(self.children, other.children))

    def describe(self) -> str:
        """Short label for messages, e.g. <entry producer="producer1">."""
        attrs = ' '.join(f'{k}="{v}"' for k, v in self.attrs.items())
        return f"<{self.tag} {attrs}>" if attrs else f"<{self.tag}>"


# ============================================================================
# DOCUMENT
# ============================================================================

class MltDocument:
    """
    A project document with an id index kept in step with the tree.

    All structural edits go through insert()/remove() so the index never
    goes stale. Node ids must not be changed in place once attached.

    Usage:
        doc = MltDocument(root)
        playlist = doc.get("playlist0")
        producer = doc.resolve(playlist.elements("entry")[0])
    """

    def __init__(self, root: Node):
        if root.kind != NodeKind.MLT:
            raise ValueError(f"Expected <mlt> root element, got <{root.tag}>")
        self.root = root
        self._ids: Dict[str, Node] = {}
        self._check_ids(root)
        self._index(root)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find(self, node_id: str) -> Optional[Node]:
        return self._ids.get(node_id)

    def get(self, node_id: str) -> Node:
        """Return the node with the given id.

        Raises:
            UnresolvedReferenceError: If no node has that id.
        """
        node = self._ids.get(node_id)
        if node is None:
            raise UnresolvedReferenceError(f"No node with id '{node_id}'")
        return node

    def resolve(self, node: Node) -> Node:
        """Follow a node's producer attribute to the node it names."""
        ref = node.get('producer')
        if ref is None:
            raise UnresolvedReferenceError(f"{node.describe()} has no producer reference")
        target = self._ids.get(ref)
        if target is None:
            raise UnresolvedReferenceError(
                f"{node.describe()} references missing producer '{ref}'"
            )
        return target

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._ids

    def top_level(self, tag: str, prefix: Optional[str] = None) -> List[Node]:
        """Direct children of <mlt> with a tag, optionally id-prefix filtered."""
        nodes = self.root.elements(tag)
        if prefix is not None:
            nodes = [n for n in nodes if (n.id or '').startswith(prefix)]
        return nodes

    def producers(self) -> List[Node]:
        """Every <producer> in document order."""
        return list(self.root.iter('producer'))

    # ------------------------------------------------------------------
    # Structural edits
    # ------------------------------------------------------------------

    @staticmethod
    def create(tag: str, attrs: Optional[Dict[str, str]] = None, text: Optional[str] = None) -> Node:
        """Build a detached node. Attribute values are stored as strings."""
        return Node(tag=tag, attrs={k: str(v) for k, v in (attrs or {}).items()}, text=text)

    def insert(self, parent: Node, index: int, node: Node) -> Node:
        """Insert node as child number ``index`` of parent and index its ids."""
        if node.parent is not None:
            raise ValueError(f"{node.describe()} is already attached; clone it first")
        self._check_ids(node)
        parent.children.insert(index, node)
        node.parent = parent
        self._index(node)
        return node

    def append(self, parent: Node, node: Node) -> Node:
        return self.insert(parent, len(parent.children), node)

    def insert_before(self, ref: Node, node: Node) -> Node:
        return self.insert(ref.parent, ref.index_in_parent(), node)

    def insert_after(self, ref: Node, node: Node) -> Node:
        return self.insert(ref.parent, ref.index_in_parent() + 1, node)

    def remove(self, node: Node) -> Node:
        """Detach node from its parent and drop its ids from the index."""
        parent = node.parent
        if parent is None:
            raise ValueError(f"Cannot remove detached node {node.describe()}")
        del parent.children[node.index_in_parent()]
        node.parent = None
        for descendant in node.iter():
            if descendant.id is not None and self._ids.get(descendant.id) is descendant:
                del self._ids[descendant.id]
        return node

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    def _check_ids(self, subtree: Node) -> None:
        seen = set()
        for node in subtree.iter():
            node_id = node.id
            if node_id is None:
                continue
            if node_id in seen or node_id in self._ids:
                raise DuplicateIdError(f"Duplicate id '{node_id}'")
            seen.add(node_id)

    def _index(self, subtree: Node) -> None:
        for node in subtree.iter():
            if node.id is not None:
                self._ids[node.id] = node
