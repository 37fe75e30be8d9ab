"""Schema store: the node tree, the schema-wide registries and per-node statistics."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from schematize.schema_values import (
    ArrayValue,
    ContentType,
    CONTENT_TYPE_ORDER,
    DateTimeValue,
    NumericValue,
    SchemaValue,
    StringValue,
    TimeSpanValue,
)


class NodeType(Enum):
    Root = 'Root'
    Child = 'Child'
    Attribute = 'Attribute'


class SchemaOwnershipError(ValueError):
    """Raised when a node is attached to a node of a different schema."""


@dataclass
class ValueRange:
    """A (min, max) pair that is undefined until the first observation."""
    min: Any = None
    max: Any = None

    @property
    def defined(self) -> bool:
        return self.min is not None

    def update(self, value) -> None:
        if self.min is None:
            self.min = value
            self.max = value
            return
        if value < self.min:
            self.min = value
        if value > self.max:
            self.max = value


@dataclass
class ValueStatistics:
    """Counters and ranges accumulated over every value recorded on a node."""
    total: int = 0
    empty: int = 0
    length: ValueRange = field(default_factory=ValueRange)
    numeric: ValueRange = field(default_factory=ValueRange)
    date_time: ValueRange = field(default_factory=ValueRange)
    time_span: ValueRange = field(default_factory=ValueRange)

    def record(self, value: SchemaValue) -> None:
        self.total += 1
        if value.content_type == ContentType.Empty:
            self.empty += 1
        if isinstance(value, StringValue):
            self.length.update(len(value.text))
        elif isinstance(value, NumericValue):
            self.numeric.update(value.value)
        elif isinstance(value, DateTimeValue):
            # partial ISO forms carry no instant
            if value.value is not None:
                self.date_time.update(value.value)
        elif isinstance(value, TimeSpanValue):
            self.time_span.update(value.value)
        elif isinstance(value, ArrayValue):
            self.length.update(value.length)


class SchemaNode:
    """A position in the inferred structural tree."""

    def __init__(self, schema: Optional['Schema'], node_type: NodeType = NodeType.Child, name: Optional[str] = None):
        self.schema: 'Schema' = schema if schema is not None else self  # type: ignore[assignment]
        self.node_type = node_type
        self.name = name
        self.content_types: Set[ContentType] = set()
        self.schema_types: Set[str] = set()
        self.statistics = ValueStatistics()
        self._children: Dict[int, 'SchemaNode'] = {}
        self._children_by_key: Dict[Tuple[NodeType, Optional[str]], 'SchemaNode'] = {}
        if node_type == NodeType.Root:
            self.content_types.add(ContentType.Root)

    @property
    def children(self) -> List['SchemaNode']:
        return list(self._children.values())

    def iter_children(self) -> Iterator['SchemaNode']:
        return iter(self._children.values())

    def find_child(self, name: Optional[str], node_type: NodeType = NodeType.Child) -> Optional['SchemaNode']:
        return self._children_by_key.get((node_type, name))

    def create_child(self, node_type: NodeType = NodeType.Child, name: Optional[str] = None) -> 'SchemaNode':
        child = SchemaNode(self.schema, node_type, name)
        self.attach_child(child)
        return child

    def get_or_create_child(self, name: Optional[str], node_type: NodeType = NodeType.Child) -> 'SchemaNode':
        child = self.find_child(name, node_type)
        if child is None:
            child = self.create_child(node_type, name)
        return child

    def attach_child(self, child: 'SchemaNode') -> None:
        """Adds ``child`` below this node, keeping it registered with the schema.

        Attaching a node that is already a child is a no-op.
        """
        if child.schema is not self.schema:
            raise SchemaOwnershipError(
                f"Cannot attach {child} to {self}: the nodes belong to different schemas")
        if id(child) in self._children:
            return
        self.schema.register_node(child)
        self._children[id(child)] = child
        self._children_by_key.setdefault((child.node_type, child.name), child)

    def add_value(self, value: SchemaValue, schema_type: Optional[str] = None) -> None:
        """Records one observed value against this node."""
        if schema_type is not None and schema_type.strip():
            self.schema.register_schema_type(schema_type)
            self.schema_types.add(schema_type)
        self.content_types.add(value.content_type)
        self.statistics.record(value)

    def sorted_content_types(self) -> List[ContentType]:
        return sorted(self.content_types, key=CONTENT_TYPE_ORDER.__getitem__)

    def __str__(self) -> str:
        text = '' if self.name else 'unnamed '
        text += f'{self.node_type.value} node'
        if self.name:
            text += f" '{self.name}'"
        if self.content_types:
            content = 'content type(s): ' + ', '.join(t.value for t in self.sorted_content_types())
        else:
            content = 'no content'
        count = len(self._children)
        if count:
            children = f"{count} child{'ren' if count != 1 else ''}"
        else:
            children = 'no children'
        return f'{text} ({content}, {children})'

    def __repr__(self) -> str:
        return f'<SchemaNode {self}>'


class Schema(SchemaNode):
    """Root of one inference session.

    Owns every node created below it, the set of schema types (variant tags)
    seen on any node and a registry of named child nodes that XML inference
    uses to resolve elements across the whole tree.
    """

    def __init__(self, name: Optional[str] = None):
        self._all_nodes: Dict[int, SchemaNode] = {}
        self._nodes_by_key: Dict[Tuple[NodeType, str], SchemaNode] = {}
        self._all_schema_types: Set[str] = set()
        super().__init__(None, NodeType.Root, name)

    @property
    def all_nodes(self) -> List[SchemaNode]:
        return list(self._all_nodes.values())

    @property
    def node_count(self) -> int:
        return len(self._all_nodes)

    @property
    def all_schema_types(self) -> List[str]:
        return sorted(self._all_schema_types)

    def register_schema_type(self, schema_type: str) -> None:
        if schema_type and schema_type.strip():
            self._all_schema_types.add(schema_type)

    def register_node(self, node: SchemaNode) -> None:
        if node.schema is not self:
            raise SchemaOwnershipError(f'{node} does not belong to {self}')
        if id(node) in self._all_nodes:
            return
        self._all_nodes[id(node)] = node
        if node.name is not None:
            self._nodes_by_key.setdefault((node.node_type, node.name), node)

    def find_node(self, name: str, node_type: NodeType = NodeType.Child) -> Optional[SchemaNode]:
        """Looks a named node up anywhere in the schema."""
        return self._nodes_by_key.get((node_type, name))

    def __str__(self) -> str:
        if self.name:
            return f"Schema '{self.name}'"
        return 'unnamed Schema'
