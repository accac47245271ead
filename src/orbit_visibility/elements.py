"""
Orbital element set parsing.

This module extracts the two numeric element lines from a raw two-line
element (TLE) text block and loads named element sets from TLE catalogue
files. Checksums and field ranges are not validated here; the propagator
rejects lines it cannot use.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import logging

from .exceptions import InvalidElementFormat

logger = logging.getLogger(__name__)

LINE1_MARKER = "1 "
LINE2_MARKER = "2 "


@dataclass(frozen=True)
class OrbitalElementSet:
    """
    Immutable pair of TLE lines for one satellite.

    Line 1 must start with ``"1 "`` and line 2 with ``"2 "``; anything else
    is rejected at construction so a partially filled set never exists.
    """

    line1: str
    line2: str
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.line1.startswith(LINE1_MARKER):
            raise InvalidElementFormat(f"Line 1 must start with '{LINE1_MARKER}': {self.line1!r}")
        if not self.line2.startswith(LINE2_MARKER):
            raise InvalidElementFormat(f"Line 2 must start with '{LINE2_MARKER}': {self.line2!r}")

    @property
    def lines(self) -> Tuple[str, str]:
        return (self.line1, self.line2)

    @property
    def norad_id(self) -> str:
        """Satellite catalog number (columns 3-7 of line 1)."""
        return self.line1[2:7].strip()

    def __str__(self) -> str:
        label = self.name or self.norad_id
        return f"OrbitalElementSet({label})"


def _clean_lines(text: str) -> List[str]:
    return [line.strip() for line in text.strip().splitlines() if line.strip()]


def parse_elements(text: str, name: Optional[str] = None) -> OrbitalElementSet:
    """
    Parse a 2- or 3-line TLE block.

    The first line starting with ``"1 "`` and the first starting with
    ``"2 "`` are taken. A leading line that is neither is used as the
    satellite name when ``name`` is not given.

    Args:
        text: Raw element text
        name: Optional satellite name

    Returns:
        OrbitalElementSet

    Raises:
        InvalidElementFormat: If either marker line is missing
    """
    if not text:
        raise InvalidElementFormat("Empty element text")

    lines = _clean_lines(text)
    line1 = next((line for line in lines if line.startswith(LINE1_MARKER)), None)
    line2 = next((line for line in lines if line.startswith(LINE2_MARKER)), None)

    if line1 is None or line2 is None:
        raise InvalidElementFormat("Element text does not contain both TLE lines")

    if name is None:
        header = lines[: lines.index(line1)]
        header = [line for line in header if not line.startswith(LINE2_MARKER)]
        if header:
            name = header[-1]

    return OrbitalElementSet(line1=line1, line2=line2, name=name)


def load_element_sets(tle_file_path: Union[str, Path]) -> Dict[str, OrbitalElementSet]:
    """
    Load every element set from a TLE catalogue.

    The file is scanned for a line 1 immediately followed by a line 2; the
    line before the pair, when it is not itself a TLE line, names the
    satellite. Unnamed 2-line entries are keyed by NORAD id. Stray lines
    are skipped with a warning and do not shift the entries after them.

    Args:
        tle_file_path: Path to TLE file

    Returns:
        Dictionary mapping satellite names to element sets, in file order

    Raises:
        FileNotFoundError: If TLE file doesn't exist
    """
    tle_path = Path(tle_file_path)
    if not tle_path.exists():
        raise FileNotFoundError(f"TLE file not found: {tle_file_path}")

    with open(tle_path, "r") as f:
        lines = _clean_lines(f.read())

    element_sets: Dict[str, OrbitalElementSet] = {}
    name: Optional[str] = None
    i = 0
    while i < len(lines):
        line = lines[i]
        next_line = lines[i + 1] if i + 1 < len(lines) else ""

        if line.startswith(LINE1_MARKER) and next_line.startswith(LINE2_MARKER):
            elements = OrbitalElementSet(line1=line, line2=next_line, name=name)
            element_sets[name or elements.norad_id] = elements
            name = None
            i += 2
            continue

        if name is not None:
            logger.warning(f"Skipping name line without TLE data in {tle_path}: {name!r}")
            name = None

        if line.startswith((LINE1_MARKER, LINE2_MARKER)):
            logger.warning(f"Skipping unpaired TLE line {i + 1} in {tle_path}")
        else:
            name = line
        i += 1

    if name is not None:
        logger.warning(f"Skipping name line without TLE data in {tle_path}: {name!r}")

    logger.info(f"Loaded {len(element_sets)} element sets from {tle_path}")
    return element_sets


def find_element_set(tle_file_path: Union[str, Path], satellite_name: str) -> OrbitalElementSet:
    """
    Find a satellite's element set in a TLE catalogue by name.

    Matching is a case-insensitive substring match on the name line.

    Raises:
        FileNotFoundError: If TLE file doesn't exist
        ValueError: If satellite not found in TLE file
    """
    for name, elements in load_element_sets(tle_file_path).items():
        if satellite_name.upper() in name.upper():
            return elements

    raise ValueError(f"Satellite '{satellite_name}' not found in TLE file")
