# trace_reader.py
import contextlib
import io
import itertools
import re
import sys

OPS = frozenset("RrWw")
ADDRESS_MAX = 2 ** 64 - 1
# every byte decodes, so stray bytes end the trace as a malformed record
TRACE_ENCODING = "latin-1"

_HEX_RE = re.compile(r"(?:0[xX])?[0-9a-fA-F]+")


class TraceOpenError(OSError):
    pass


def _tokens(stream):
    for line in stream:
        yield from line.split()


def read_trace(stream):
    """
    Yield (op, address) records from a text trace of "<op> <hex-address>" pairs.
    The op may be glued to its address ("R1f"). Reading stops quietly at the
    first record that does not parse; records before it are kept.
    """
    tokens = _tokens(stream)
    for token in tokens:
        op, rest = token[0], token[1:]
        # ops other than R/W end the trace rather than counting as writes
        if op not in OPS:
            return
        if not rest:
            rest = next(tokens, None)
            if rest is None:
                return
        if not _HEX_RE.fullmatch(rest):
            return
        yield op, min(int(rest, 16), ADDRESS_MAX)


@contextlib.contextmanager
def _stdin_trace():
    stream = io.TextIOWrapper(sys.stdin.buffer, encoding=TRACE_ENCODING)
    try:
        yield stream
    finally:
        # leave sys.stdin's buffer open
        stream.detach()


def open_trace(path):
    if path == "-":
        return _stdin_trace()
    try:
        return open(path, "r", encoding=TRACE_ENCODING)
    except OSError as exc:
        raise TraceOpenError(f"could not open the trace file: {path}") from exc


def load_trace(path, max_records=None):
    """Read a whole trace into a list, optionally only its first max_records."""
    with open_trace(path) as f:
        return list(itertools.islice(read_trace(f), max_records))
