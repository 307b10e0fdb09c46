"""
File list reader
"""
import sys
from pathlib import Path
from typing import Iterable, List, TextIO, Union

from ...core.exceptions import ListFileError


def parse_file_list(lines: Iterable[str]) -> List[str]:
    """Strip each line and drop blank ones, keeping order and duplicates"""
    return [line.strip() for line in lines if line.strip()]


def read_file_list(source: Union[str, Path, TextIO]) -> List[str]:
    """
    Read remote paths, one per line.

    Args:
        source: Path to a list file, "-" for stdin, or an open text stream

    Returns:
        Ordered remote paths

    Raises:
        ListFileError: If the list file cannot be read
    """
    if hasattr(source, "read"):
        return parse_file_list(source)

    if str(source) == "-":
        return parse_file_list(sys.stdin)

    path = Path(source).expanduser()
    try:
        with path.open(encoding="utf-8") as f:
            return parse_file_list(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ListFileError(f"Cannot read file list {path}: {e}") from e
