"""Turn raw device lines into typed events.

The firmware prints three kinds of lines over serial::

    12:00:01.123 -> Temprature:36.6-Pulse:72-Gas:310-BT:1
    12:00:02.456 -> Hello, Ada
    12:03:12.789 -> Goodbye - Duration:00:03:10

The ``... ->`` prefix is added by the serial monitor and stripped here.
"""
from __future__ import annotations
import re
from typing import Callable, Optional

from ..models import Event, SensorSample, SessionEnd, SessionStart, Unrecognized

_PREFIX_RE = re.compile(r"^.*?->\s*")
_INT_RE = re.compile(r"^\s*[+-]?\d+")
_FLOAT_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

TEMPERATURE_MARKERS = ("temprature:", "temperature:")  # firmware spells it "Temprature"
PULSE_MARKER = "pulse:"
FIELD_SEP = "-"
VALUE_SEP = ":"
GREETING = "Hello,"
FAREWELL = "Goodbye"
DURATION_MARKER = "Duration:"


def _parse_int(value: str) -> Optional[int]:
    m = _INT_RE.match(value)
    return int(m.group()) if m else None

def _parse_float(value: str) -> Optional[float]:
    m = _FLOAT_RE.match(value)
    return float(m.group()) if m else None

# key substring -> (model field, parser); first match wins
_FIELDS: list[tuple[tuple[str, ...], str, Callable[[str], object]]] = [
    (("temp",), "temperature", _parse_float),
    (("pulse",), "pulse", _parse_int),
    (("gas",), "gas", _parse_int),
    (("bt", "bluetooth"), "bt_connected", _parse_int),
]


def clean_line(raw_line: str) -> str:
    return _PREFIX_RE.sub("", raw_line, count=1).strip()

def is_sample_line(line: str) -> bool:
    lowered = line.lower()
    return PULSE_MARKER in lowered and any(m in lowered for m in TEMPERATURE_MARKERS)

def parse_sample_fields(line: str) -> dict:
    """Extract the known fields of a sample line; unparseable values are dropped."""
    fields: dict = {}
    for part in line.split(FIELD_SEP):
        pieces = part.split(VALUE_SEP)
        if len(pieces) < 2:
            continue
        key, value = pieces[0].strip().lower(), pieces[1]
        for needles, name, parse in _FIELDS:
            if any(n in key for n in needles):
                parsed = parse(value)
                if parsed is not None:
                    fields[name] = parsed
                break
    return fields


def classify(raw_line: str) -> Event:
    line = clean_line(raw_line)

    if is_sample_line(line):
        fields = parse_sample_fields(line)
        if fields:
            return SensorSample(line=line, **fields)
        return Unrecognized(line=line)

    if line.startswith(GREETING):
        return SessionStart(line=line, name=line[len(GREETING):].strip())

    if line.startswith(FAREWELL):
        _, marker, rest = line.partition(DURATION_MARKER)
        return SessionEnd(line=line, duration=rest.strip() if marker else None)

    return Unrecognized(line=line)
