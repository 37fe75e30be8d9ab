"""Infers a structural schema from XML files.

This module provides:
- iter_xml_events: Turn an XML byte stream into walker events
- convert_xml_to_schema: Fold XML files into one schema and persist it
"""

import dataclasses
import logging
from typing import BinaryIO, Iterator, List, Optional, Tuple

import lxml.etree as ET

from schematize.common import file_schema_type, is_empty_file, sample_files
from schematize.schema import Schema
from schematize.schema_inference import (
    XmlEvent,
    XmlNodeType,
    infer_schema_from_xml_events,
    qualified_name,
)
from schematize.serialization import persist_schema

logger = logging.getLogger(__name__)


def split_tag(tag: str) -> Tuple[Optional[str], str]:
    """Splits lxml's ``{namespace}local`` notation."""
    if tag.startswith('{'):
        namespace_uri, local_name = tag[1:].split('}', 1)
        return namespace_uri, local_name
    return None, tag


def _qualify(tag: str) -> str:
    namespace_uri, local_name = split_tag(tag)
    return qualified_name(local_name, namespace_uri)


class _XmlEventCollector:
    """lxml parser target that records start, data and end callbacks as events.

    Adjacent text chunks are merged into one event. An end that directly
    follows its start turns the start into an empty element with no end event.
    """

    def __init__(self):
        self.events: List[XmlEvent] = []
        self.text: List[str] = []
        # the last event is a start whose element has no content yet
        self.just_started = False

    def start(self, tag, attrib):
        self._flush_text()
        namespace_uri, local_name = split_tag(tag)
        attributes = tuple((_qualify(name), value) for name, value in attrib.items())
        self.events.append(XmlEvent(XmlNodeType.ElementStart, local_name=local_name,
                                    namespace_uri=namespace_uri, attributes=attributes))
        self.just_started = True

    def end(self, tag):
        self._flush_text()
        if self.just_started:
            self.events[-1] = dataclasses.replace(self.events[-1], is_empty=True)
            self.just_started = False
        else:
            self.events.append(XmlEvent(XmlNodeType.ElementEnd))

    def data(self, data):
        self.text.append(data)

    def close(self):
        self._flush_text()

    def _flush_text(self):
        if not self.text:
            return
        text = ''.join(self.text)
        self.text = []
        self.just_started = False
        if text.strip():
            self.events.append(XmlEvent(XmlNodeType.Text, value=text))
        else:
            self.events.append(XmlEvent(XmlNodeType.SignificantWhitespace, value=text))

    def drain(self, final: bool = False) -> List[XmlEvent]:
        """Hands out every event that can no longer change."""
        if not final and self.just_started:
            ready, self.events = self.events[:-1], self.events[-1:]
        else:
            ready, self.events = self.events, []
        return ready


def iter_xml_events(stream: BinaryIO, chunk_size: int = 65536) -> Iterator[XmlEvent]:
    """Reads an XML document incrementally and yields walker events."""
    collector = _XmlEventCollector()
    parser = ET.XMLParser(target=collector, resolve_entities=False, no_network=True)
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        parser.feed(chunk)
        yield from collector.drain()
    parser.close()
    yield from collector.drain(final=True)
    yield XmlEvent(XmlNodeType.EndOfStream)


def infer_schema_from_xml_file(file_path: str, schema: Optional[Schema] = None,
                               schema_type: Optional[str] = None) -> Schema:
    """Folds one XML file into ``schema`` (or a new schema)."""
    with open(file_path, 'rb') as f:
        return infer_schema_from_xml_events(iter_xml_events(f), schema, schema_type)


def convert_xml_to_schema(
    input_files: List[str],
    schema_file: Optional[str] = None,
    typed_file_format: Optional[str] = None,
    schema_name: Optional[str] = None,
    schema_type: Optional[str] = None,
    schema_type_from_filename: bool = False,
    sample_size: int = 0
) -> Schema:
    """Infers a structural schema from XML files.

    Each file is treated as a single XML document. All documents are folded
    into one schema, with elements identified by qualified name across the
    whole schema.

    Args:
        input_files: List of XML file paths to analyze
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
            logger.warning('Skipping empty XML file %s', file_path)
            continue
        pass_schema_type = file_schema_type(file_path) if schema_type_from_filename else schema_type
        logger.debug('Reading XML file %s', file_path)
        infer_schema_from_xml_file(file_path, schema, pass_schema_type)

    if schema_file:
        persist_schema(schema, schema_file, typed_file_format)
    return schema
