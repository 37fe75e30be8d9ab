"""Shared schema inference logic for JSON and XML documents.

Both walkers consume a flat, ordered stream of parse events and fold what they
see into a Schema. They differ in how a node is identified:

- JSON: a child is found by name among the children of its parent only.
- XML: an element is found by qualified name anywhere in the schema first,
  and only created below the current parent when it has never been seen.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from schematize.schema import NodeType, Schema, SchemaNode
from schematize.schema_values import (
    ArrayValue,
    ContentType,
    EMPTY,
    OBJECT,
    StringValue,
    classify_declared,
    parse_value,
)

logger = logging.getLogger(__name__)


class UnexpectedTokenError(ValueError):
    """Raised when the token source yields an event the walker cannot handle."""


class JsonTokenType(Enum):
    ObjectStart = 'ObjectStart'
    ArrayStart = 'ArrayStart'
    ObjectEnd = 'ObjectEnd'
    ArrayEnd = 'ArrayEnd'
    PropertyName = 'PropertyName'
    Null = 'Null'
    Boolean = 'Boolean'
    Integer = 'Integer'
    Float = 'Float'
    Date = 'Date'
    String = 'String'
    EndOfStream = 'EndOfStream'


@dataclass(frozen=True)
class JsonToken:
    token_type: JsonTokenType
    value: Any = None


class XmlNodeType(Enum):
    ElementStart = 'ElementStart'
    ElementEnd = 'ElementEnd'
    Text = 'Text'
    CData = 'CData'
    SignificantWhitespace = 'SignificantWhitespace'
    EndOfStream = 'EndOfStream'


@dataclass(frozen=True)
class XmlEvent:
    node_type: XmlNodeType
    local_name: Optional[str] = None
    namespace_uri: Optional[str] = None
    is_empty: bool = False
    attributes: Sequence[Tuple[str, str]] = ()
    value: Optional[str] = None


_DECLARED_TYPES = {
    JsonTokenType.Boolean: ContentType.Boolean,
    JsonTokenType.Integer: ContentType.NumericInteger,
    JsonTokenType.Float: ContentType.NumericDecimal,
    JsonTokenType.Date: ContentType.DateTime,
}


def qualified_name(local_name: str, namespace_uri: Optional[str] = None) -> str:
    """Returns ``local`` or ``[namespace]:local``."""
    if namespace_uri:
        return f'[{namespace_uri}]:{local_name}'
    return local_name


class JsonSchemaWalker:
    """Folds one JSON token stream into a schema."""

    def __init__(self, schema: Schema, schema_type: Optional[str] = None):
        self.schema = schema
        self.schema_type = schema_type
        self.nesting: List[SchemaNode] = [schema]
        # element counts of the containers on the nesting stack, root excluded
        self.element_counts: List[int] = []
        self.property_name: Optional[str] = None

    def walk(self, tokens: Iterable[JsonToken]) -> Schema:
        for token in tokens:
            if not isinstance(token, JsonToken):
                raise UnexpectedTokenError(f'Unexpected JSON token {token!r}')
            if token.token_type == JsonTokenType.EndOfStream:
                break
            self.process(token)
        return self.schema

    def process(self, token: JsonToken) -> None:
        token_type = token.token_type
        if token_type in (JsonTokenType.ObjectStart, JsonTokenType.ArrayStart):
            container = self._take_child()
            self.nesting.append(container)
            self.element_counts.append(0)
        elif token_type in (JsonTokenType.ObjectEnd, JsonTokenType.ArrayEnd):
            if len(self.nesting) < 2:
                raise UnexpectedTokenError(f'{token_type.value} without a matching start')
            container = self.nesting.pop()
            count = self.element_counts.pop()
            if token_type == JsonTokenType.ArrayEnd:
                container.add_value(ArrayValue(count), self.schema_type)
            else:
                container.add_value(OBJECT, self.schema_type)
            self._count_element()
        elif token_type == JsonTokenType.PropertyName:
            self.property_name = token.value
        elif token_type == JsonTokenType.Null:
            self._take_child().add_value(EMPTY, self.schema_type)
            self._count_element()
        elif token_type in _DECLARED_TYPES:
            value = classify_declared(_DECLARED_TYPES[token_type], token.value)
            self._take_child().add_value(value, self.schema_type)
            self._count_element()
        elif token_type == JsonTokenType.String:
            node = self._take_child()
            text = '' if token.value is None else str(token.value)
            node.add_value(StringValue(text), self.schema_type)
            classified = parse_value(text)
            if classified.content_type != ContentType.String:
                node.add_value(classified, self.schema_type)
            self._count_element()
        else:
            raise UnexpectedTokenError(f'Unexpected JSON token {token_type}')

    def _take_child(self) -> SchemaNode:
        node = self.nesting[-1].get_or_create_child(self.property_name)
        self.property_name = None
        return node

    def _count_element(self) -> None:
        if self.element_counts:
            self.element_counts[-1] += 1


class XmlSchemaWalker:
    """Folds one XML event stream into a schema."""

    def __init__(self, schema: Schema, schema_type: Optional[str] = None):
        self.schema = schema
        self.schema_type = schema_type
        self.nesting: List[SchemaNode] = [schema]

    def walk(self, events: Iterable[XmlEvent]) -> Schema:
        for event in events:
            if not isinstance(event, XmlEvent):
                raise UnexpectedTokenError(f'Unexpected XML event {event!r}')
            if event.node_type == XmlNodeType.EndOfStream:
                break
            self.process(event)
        return self.schema

    def process(self, event: XmlEvent) -> None:
        node_type = event.node_type
        if node_type == XmlNodeType.ElementStart:
            self._start_element(event)
        elif node_type == XmlNodeType.ElementEnd:
            if len(self.nesting) < 2:
                raise UnexpectedTokenError('ElementEnd without a matching ElementStart')
            self.nesting.pop()
        elif node_type in (XmlNodeType.Text, XmlNodeType.CData):
            text_node = self.nesting[-1].get_or_create_child(None)
            text_node.add_value(parse_value(event.value), self.schema_type)
        elif node_type == XmlNodeType.SignificantWhitespace:
            pass
        else:
            raise UnexpectedTokenError(f'Unexpected XML event {node_type}')

    def _start_element(self, event: XmlEvent) -> None:
        if not event.local_name:
            raise UnexpectedTokenError('ElementStart without a name')
        name = qualified_name(event.local_name, event.namespace_uri)
        parent = self.nesting[-1]
        element = self.schema.find_node(name)
        if element is not None:
            parent.attach_child(element)
        else:
            element = parent.get_or_create_child(name)
        element.add_value(OBJECT, self.schema_type)

        if not event.is_empty:
            self.nesting.append(element)

        for attribute_name, attribute_value in event.attributes:
            attribute = element.get_or_create_child(attribute_name, NodeType.Attribute)
            attribute.add_value(parse_value(attribute_value), self.schema_type)


def infer_schema_from_json_events(tokens: Iterable[JsonToken], schema: Optional[Schema] = None,
                                  schema_type: Optional[str] = None) -> Schema:
    """Runs one JSON pass, merging into ``schema`` when one is given.

    Args:
        tokens: Parse events of one or more JSON documents
        schema: Schema to merge into; a new one is created if omitted
        schema_type: Variant tag recorded with every value of this pass

    Returns:
        The schema the tokens were folded into
    """
    if schema is None:
        schema = Schema()
    JsonSchemaWalker(schema, schema_type).walk(tokens)
    logger.debug('JSON pass done: %d nodes, schema type %r', schema.node_count, schema_type)
    return schema


def infer_schema_from_xml_events(events: Iterable[XmlEvent], schema: Optional[Schema] = None,
                                 schema_type: Optional[str] = None) -> Schema:
    """Runs one XML pass, merging into ``schema`` when one is given.

    Args:
        events: Parse events of one XML document
        schema: Schema to merge into; a new one is created if omitted
        schema_type: Variant tag recorded with every value of this pass

    Returns:
        The schema the events were folded into
    """
    if schema is None:
        schema = Schema()
    XmlSchemaWalker(schema, schema_type).walk(events)
    logger.debug('XML pass done: %d nodes, schema type %r', schema.node_count, schema_type)
    return schema
