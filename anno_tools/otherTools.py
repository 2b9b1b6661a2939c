"""
@Description: shared helpers: errors, line splitting, side files
"""
import gzip
import os
from loguru import logger
from typing import Iterable, Iterator, List, Optional, Set


class AnnoToolsError(Exception):
    "base of every error raised by anno_tools"


class ParseError(AnnoToolsError, ValueError):
    "malformed input: field counts, headers, attributes, coordinates"


class ConfigError(AnnoToolsError):
    "unusable arguments or side files"


def splitLine(line: str, nFields: Optional[int] = None) -> List[str]:
    """
    chomp `line` and split it on tabs, keeping trailing empty fields.
    if `nFields` is given the line must have exactly that many fields
    """
    ls_field = line.rstrip("\n").rstrip("\r").split("\t")
    if nFields is not None and len(ls_field) != nFields:
        raise ParseError(
            f"line doesn't have {nFields} columns ({len(ls_field)} found):\n{line.rstrip()}"
        )
    return ls_field


def openText(path: str):
    "open plain or gzip-compressed text for reading"
    if path.endswith(".gz"):
        return gzip.open(path, "rt")
    return open(path, "r")


def readIdSet(path: str) -> Set[str]:
    """
    read a file with one identifier per line

    Parameters
    ----------
    path : str
        plain text or `.gz`

    Returns
    -------
    Set[str]
    """
    if not os.path.isfile(path):
        raise ConfigError(f"{path} is not a file")
    try:
        with openText(path) as fh:
            st_id = {line.strip() for line in fh if line.strip()}
    except OSError as err:
        raise ConfigError(f"cannot read {path}: {err}") from err
    logger.debug(f"{len(st_id)} identifiers read from {path}")
    return st_id


def iterChunks(it: Iterable[str], chunkSize: int) -> Iterator[List[str]]:
    "yield lists of at most `chunkSize` items"
    ls_chunk = []
    for item in it:
        ls_chunk.append(item)
        if len(ls_chunk) >= chunkSize:
            yield ls_chunk
            ls_chunk = []
    if ls_chunk:
        yield ls_chunk
