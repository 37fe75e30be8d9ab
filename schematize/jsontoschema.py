"""Infers a structural schema from JSON files.

This module provides:
- iter_json_tokens: Turn a JSON (or JSON Lines) byte stream into walker tokens
- convert_json_to_schema: Fold JSON files into one schema and persist it
"""

import logging
from decimal import Decimal
from typing import BinaryIO, Iterator, List, Optional

import ijson

from schematize.common import file_schema_type, is_empty_file, sample_files
from schematize.schema import Schema
from schematize.schema_inference import (
    JsonToken,
    JsonTokenType,
    UnexpectedTokenError,
    infer_schema_from_json_events,
)
from schematize.serialization import persist_schema

logger = logging.getLogger(__name__)

_STRUCTURAL_EVENTS = {
    'start_map': JsonTokenType.ObjectStart,
    'end_map': JsonTokenType.ObjectEnd,
    'start_array': JsonTokenType.ArrayStart,
    'end_array': JsonTokenType.ArrayEnd,
}


def iter_json_tokens(stream: BinaryIO) -> Iterator[JsonToken]:
    """Translates ijson parse events into JSON walker tokens.

    Concatenated values and JSON Lines are read as a sequence of documents.
    """
    for _, event, value in ijson.parse(stream, multiple_values=True):
        if event in _STRUCTURAL_EVENTS:
            yield JsonToken(_STRUCTURAL_EVENTS[event])
        elif event == 'map_key':
            yield JsonToken(JsonTokenType.PropertyName, value)
        elif event == 'null':
            yield JsonToken(JsonTokenType.Null)
        elif event == 'boolean':
            yield JsonToken(JsonTokenType.Boolean, value)
        elif event in ('number', 'integer', 'double'):
            if isinstance(value, int):
                yield JsonToken(JsonTokenType.Integer, value)
            else:
                yield JsonToken(JsonTokenType.Float, value if isinstance(value, Decimal) else Decimal(str(value)))
        elif event == 'string':
            yield JsonToken(JsonTokenType.String, value)
        else:
            raise UnexpectedTokenError(f'Unexpected ijson event {event!r}')
    yield JsonToken(JsonTokenType.EndOfStream)


def infer_schema_from_json_file(file_path: str, schema: Optional[Schema] = None,
                                schema_type: Optional[str] = None) -> Schema:
    """Folds one JSON file into ``schema`` (or a new schema)."""
    with open(file_path, 'rb') as f:
        return infer_schema_from_json_events(iter_json_tokens(f), schema, schema_type)


def convert_json_to_schema(
    input_files: List[str],
    schema_file: Optional[str] = None,
    typed_file_format: Optional[str] = None,
    schema_name: Optional[str] = None,
    schema_type: Optional[str] = None,
    schema_type_from_filename: bool = False,
    sample_size: int = 0
) -> Schema:
    """Infers a structural schema from JSON files.

    All files are folded into one schema. Each file may carry a schema type
    (variant tag) so that filtered projections can be written per variant.

    Args:
        input_files: List of JSON or JSON Lines file paths to analyze
        schema_file: Output path for the untyped schema projection
        typed_file_format: Template such as ``schema-{0}.json`` for one
            projection per schema type
        schema_name: Optional name of the schema
        schema_type: Schema type recorded for every value
        schema_type_from_filename: Use each file's name (without extension)
            as its schema type
        sample_size: Maximum number of files to read (0 = all)

    Returns:
        The inferred schema
    """
    if not input_files:
        raise ValueError("At least one input file is required")

    schema = Schema(schema_name)
    for file_path in sample_files(input_files, sample_size):
        if is_empty_file(file_path):
            logger.warning('Skipping empty JSON file %s', file_path)
            continue
        pass_schema_type = file_schema_type(file_path) if schema_type_from_filename else schema_type
        logger.debug('Reading JSON file %s', file_path)
        infer_schema_from_json_file(file_path, schema, pass_schema_type)

    if schema_file:
        persist_schema(schema, schema_file, typed_file_format)
    return schema

