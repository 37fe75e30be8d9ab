"""Observed values and the content type classifier.

Every terminal value seen while walking a document is turned into a
SchemaValue before it reaches a node's statistics. The classifier checks,
in this order: empty text, booleans, decimal numbers, ISO 8601 dates, times,
durations and intervals, a couple of legacy date formats, clock-style time
spans and finally falls back to plain strings.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Optional, Union


class ContentType(Enum):
    """Semantic classification of an observed value."""
    String = 'String'
    NumericInteger = 'NumericInteger'
    NumericDecimal = 'NumericDecimal'
    Boolean = 'Boolean'
    DateTime = 'DateTime'
    TimeSpan = 'TimeSpan'
    Object = 'Object'
    Array = 'Array'
    Empty = 'Empty'
    Root = 'Root'
    Default = 'String'


CONTENT_TYPE_ORDER = {content_type: index for index, content_type in enumerate(ContentType)}


@dataclass(frozen=True)
class StringValue:
    text: str

    @property
    def content_type(self) -> ContentType:
        return ContentType.String


@dataclass(frozen=True)
class NumericValue:
    value: Decimal
    content_type: ContentType = ContentType.NumericDecimal

    @classmethod
    def of(cls, value: Decimal) -> 'NumericValue':
        """Types the number as an integer when it has no fractional part."""
        if value == value.to_integral_value():
            return cls(value, ContentType.NumericInteger)
        return cls(value, ContentType.NumericDecimal)


@dataclass(frozen=True)
class BooleanValue:
    value: bool

    @property
    def content_type(self) -> ContentType:
        return ContentType.Boolean


@dataclass(frozen=True)
class DateTimeValue:
    """An ISO 8601 (or legacy formatted) date/time.

    ``value`` holds the instant as naive UTC when the text names one, and is
    None for durations, intervals and partial forms.
    """
    value: Optional[datetime] = None

    @property
    def content_type(self) -> ContentType:
        return ContentType.DateTime


@dataclass(frozen=True)
class TimeSpanValue:
    value: timedelta

    @property
    def content_type(self) -> ContentType:
        return ContentType.TimeSpan


@dataclass(frozen=True)
class ArrayValue:
    length: int

    @property
    def content_type(self) -> ContentType:
        return ContentType.Array


@dataclass(frozen=True)
class MarkerValue:
    """A value without payload: Empty, Object or Root."""
    content_type: ContentType


SchemaValue = Union[StringValue, NumericValue, BooleanValue, DateTimeValue,
                    TimeSpanValue, ArrayValue, MarkerValue]

EMPTY = MarkerValue(ContentType.Empty)
OBJECT = MarkerValue(ContentType.Object)


# ISO 8601 building blocks
_ISO_DATE = r'(([+-]\d+)?\d{4}((-\d{2}){0,2}|(\d{2}){0,2}|(-W\d{2}(-\d)?)|(W\d{2}(\d)?)|(-?\d{3}))|--(\d{2}-?\d{2}))'
_ISO_TIME = r'(\d{2}((((:\d{2}){2}|(\d{2}){2})([.,]\d+)?)|(:\d{2})?|(\d{2})?)(Z|[+-]\d{2}(:?\d{2})?)?)'
_ISO_DATETIME = f'({_ISO_DATE}|{_ISO_TIME}|{_ISO_DATE}T{_ISO_TIME})'
_ISO_DURATION = f'(P((?=.)((\\d+Y)?(\\d+M)?(\\d+D)?|{_ISO_DATE})(T(?=.)((\\d+H)?(\\d+M)?(\\d+S)?|{_ISO_TIME}))?|\\d+W))'
_ISO_INTERVAL = (f'((R\\d*/)?({_ISO_DATETIME}/{_ISO_DATETIME}|{_ISO_DATETIME}/{_ISO_DURATION}'
                 f'|{_ISO_DURATION}/{_ISO_DATETIME}|{_ISO_DURATION}))')

ISO8601_PATTERN = re.compile(f'({_ISO_DATETIME}|{_ISO_INTERVAL})')

_DECIMAL_PATTERN = re.compile(r'\s*[+-]?(\d+(\.\d*)?|\.\d+)\s*')
_SHORT_DATETIME_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2} \d{2}:\d{2}')
_RFC1123_PATTERN = re.compile(r'[A-Z][a-z]{2}, \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} GMT')
_TIMESPAN_PATTERN = re.compile(
    r'(?P<sign>-)?((?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2})'
    r'(:(?P<seconds>\d{2})(\.(?P<fraction>\d{1,7}))?)?')


def parse_value(text: Optional[str]) -> SchemaValue:
    """Classifies raw text into a SchemaValue. Never raises."""
    if text is None or not text.strip():
        return EMPTY

    lowered = text.lower()
    if lowered == 'true':
        return BooleanValue(True)
    if lowered == 'false':
        return BooleanValue(False)

    number = _parse_decimal(text)
    if number is not None:
        return NumericValue.of(number)

    if ISO8601_PATTERN.fullmatch(text):
        return DateTimeValue(_resolve_instant(text))

    legacy = _parse_legacy_datetime(text)
    if legacy is not None:
        return DateTimeValue(legacy)

    span = parse_timespan(text)
    if span is not None:
        return TimeSpanValue(span)

    return StringValue(text)


def _parse_decimal(text: str) -> Optional[Decimal]:
    if not _DECIMAL_PATTERN.fullmatch(text):
        return None
    try:
        return Decimal(text.strip())
    except InvalidOperation:
        return None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _resolve_instant(text: str) -> Optional[datetime]:
    """Returns the instant an ISO 8601 text names, if it names exactly one."""
    if '/' in text or text.startswith(('P', 'R')):
        return None
    try:
        return _to_naive_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        return None


def _parse_legacy_datetime(text: str) -> Optional[datetime]:
    try:
        if _SHORT_DATETIME_PATTERN.fullmatch(text):
            return datetime.strptime(text, '%Y-%m-%d %H:%M')
        if _RFC1123_PATTERN.fullmatch(text):
            return _to_naive_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, OverflowError):
        return None
    return None


def parse_timespan(text: str) -> Optional[timedelta]:
    """Parses ``[-][d.]hh:mm[:ss[.fffffff]]`` into a timedelta."""
    match = _TIMESPAN_PATTERN.fullmatch(text)
    if not match:
        return None
    hours = int(match.group('hours'))
    minutes = int(match.group('minutes'))
    seconds = int(match.group('seconds') or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    fraction = match.group('fraction') or ''
    microseconds = int(fraction.ljust(7, '0')[:6]) if fraction else 0
    span = timedelta(days=int(match.group('days') or 0), hours=hours, minutes=minutes,
                     seconds=seconds, microseconds=microseconds)
    return -span if match.group('sign') else span


def format_timespan(span: timedelta) -> str:
    """Formats a timedelta the way parse_timespan reads it."""
    sign = '-' if span < timedelta(0) else ''
    span = abs(span)
    hours, remainder = divmod(span.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f'{sign}{span.days}.' if span.days else sign
    text += f'{hours:02d}:{minutes:02d}:{seconds:02d}'
    if span.microseconds:
        text += f'.{span.microseconds:06d}0'
    return text


def classify_declared(content_type: ContentType, raw) -> SchemaValue:
    """Builds a SchemaValue for a scalar whose type the tokenizer already knows."""
    if raw is None or content_type == ContentType.Empty:
        return EMPTY
    if content_type == ContentType.Boolean:
        return BooleanValue(bool(raw))
    if content_type in (ContentType.NumericInteger, ContentType.NumericDecimal):
        number = raw if isinstance(raw, Decimal) else Decimal(str(raw))
        return NumericValue(number, content_type)
    if content_type == ContentType.DateTime:
        if isinstance(raw, datetime):
            try:
                return DateTimeValue(_to_naive_utc(raw))
            except OverflowError:
                return DateTimeValue()
        return DateTimeValue(_resolve_instant(str(raw)))
    if content_type == ContentType.TimeSpan:
        return TimeSpanValue(raw)
    return StringValue(str(raw))
