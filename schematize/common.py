"""
Common utility functions for Schematize.
"""

import os
from decimal import Decimal
from typing import List, Union


def sample_files(input_files: List[str], sample_size: int) -> List[str]:
    """Returns the first ``sample_size`` files, or all of them for 0."""
    if sample_size > 0:
        return input_files[:sample_size]
    return input_files


def file_schema_type(file_path: str) -> str:
    """Derives a schema type from a file name, e.g. ``orders`` for ``data/orders.json``."""
    return os.path.splitext(os.path.basename(file_path))[0]


def is_empty_file(file_path: str) -> bool:
    return os.path.getsize(file_path) == 0


def json_number(value: Decimal) -> Union[int, float]:
    """Converts a Decimal into the closest JSON number."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def ensure_directory(file_path: str) -> None:
    """Creates the directory a file is about to be written to."""
    output_dir = os.path.dirname(file_path)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)
