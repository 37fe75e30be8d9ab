"""Projects a schema into plain dictionaries and writes them as JSON.

The untyped projection covers every node and lists schema types. A typed
projection keeps only the nodes that received a value tagged with one schema
type and leaves the schema type lists out.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Set

from schematize.common import ensure_directory, json_number
from schematize.schema import Schema, SchemaNode, ValueRange, ValueStatistics
from schematize.schema_values import format_timespan

logger = logging.getLogger(__name__)


def serialize_schema(schema: Schema, schema_type: Optional[str] = None) -> Dict[str, Any]:
    """Builds the output document for a schema.

    Args:
        schema: The schema to project
        schema_type: Restrict the projection to nodes carrying this schema type

    Returns:
        A JSON-compatible dictionary
    """
    result: Dict[str, Any] = {}
    if schema.name:
        result['name'] = schema.name
    result['type'] = schema.node_type.value
    if not schema_type:
        result['schemaTypes'] = schema.all_schema_types
    result['contentTypes'] = [t.value for t in schema.sorted_content_types()]
    result['children'] = _serialize_children(schema, schema_type, {id(schema)})
    return result


def serialize_node(node: SchemaNode, schema_type: Optional[str] = None,
                   ancestors: Optional[Set[int]] = None) -> Dict[str, Any]:
    ancestors = ancestors or set()
    result: Dict[str, Any] = {}
    if node.name:
        result['name'] = node.name
    result['type'] = node.node_type.value
    if not schema_type:
        result['schemaTypes'] = sorted(node.schema_types)
    result['contentTypes'] = [t.value for t in node.sorted_content_types()]
    value = _serialize_statistics(node.statistics)
    if value:
        result['value'] = value
    if id(node) in ancestors:
        # an XML element that re-appears inside itself
        result['children'] = []
    else:
        result['children'] = _serialize_children(node, schema_type, ancestors | {id(node)})
    return result


def _serialize_children(node: SchemaNode, schema_type: Optional[str], ancestors: Set[int]) -> List[Dict[str, Any]]:
    return [serialize_node(child, schema_type, ancestors)
            for child in node.iter_children()
            if not schema_type or schema_type in child.schema_types]


def _serialize_statistics(statistics: ValueStatistics) -> Dict[str, Any]:
    value: Dict[str, Any] = {}
    if statistics.total > 0:
        value['totalCount'] = statistics.total
    if statistics.empty > 0:
        value['emptyCount'] = statistics.empty
    if statistics.length.defined:
        value['length'] = _range(statistics.length, int)
    if statistics.numeric.defined:
        value['numeric'] = _range(statistics.numeric, json_number)
    if statistics.date_time.defined:
        value['dateTime'] = _range(statistics.date_time, lambda d: d.isoformat())
    if statistics.time_span.defined:
        value['timeSpan'] = _range(statistics.time_span, format_timespan)
    return value


def _range(value_range: ValueRange, convert) -> Dict[str, Any]:
    return {'min': convert(value_range.min), 'max': convert(value_range.max)}


def persist_schema(schema: Schema, main_file: str, typed_file_format: Optional[str] = None) -> None:
    """Writes the untyped projection and, optionally, one projection per schema type.

    Args:
        schema: The schema to write
        main_file: Output path of the untyped projection
        typed_file_format: ``str.format`` template receiving the schema type,
            e.g. ``out/schema-{0}.json``
    """
    _write_json(main_file, serialize_schema(schema))
    if typed_file_format:
        for schema_type in schema.all_schema_types:
            _write_json(typed_file_format.format(schema_type), serialize_schema(schema, schema_type))


def _write_json(file_path: str, document: Dict[str, Any]) -> None:
    ensure_directory(file_path)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(document, f, indent=2)
    logger.debug('Wrote %s', file_path)
