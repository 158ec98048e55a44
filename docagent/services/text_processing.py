"""
Text processing for ingestion: cleaning and chunking.

Chunks are overlapping windows of at most chunk_size characters, cut at the
coarsest boundary available (paragraph, line, word, character).
"""

import unicodedata

DEFAULT_SEPARATORS = ("\n\n", "\n", " ", "")

# PDF extraction leaves these behind in bullet lists
_CONTROL_CHARS = {"\x00": " ", "\x7f": " "}


def clean_text(text: str) -> str:
    """
    Normalize raw extracted text: NFKC, stray control characters, trailing
    whitespace, consecutive duplicate lines and runs of blank lines.
    """
    if not text or not text.strip():
        return ""
    text = unicodedata.normalize("NFKC", text)
    for ch, repl in _CONTROL_CHARS.items():
        text = text.replace(ch, repl)
    lines = [line.strip() for line in text.splitlines()]
    result: list[str] = []
    for line in lines:
        if result and line and result[-1] == line:
            continue
        if line == "" and (not result or result[-1] == ""):
            continue
        result.append(line)
    return "\n".join(result).strip()


def _split_pieces(text: str, chunk_size: int, separators: tuple[str, ...]) -> list[str]:
    """Break text into pieces no longer than chunk_size whose concatenation is text."""
    sep = separators[-1]
    rest: tuple[str, ...] = ()
    for i, s in enumerate(separators):
        if s == "" or s in text:
            sep, rest = s, separators[i + 1 :]
            break

    if sep == "":
        parts = list(text)
    else:
        raw = text.split(sep)
        parts = [p + sep for p in raw[:-1]] + [raw[-1]]
        parts = [p for p in parts if p]

    pieces: list[str] = []
    for p in parts:
        if len(p) <= chunk_size or not rest:
            pieces.append(p)
        else:
            pieces.extend(_split_pieces(p, chunk_size, rest))
    return pieces


def split_into_chunks(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
    separators: tuple[str, ...] = DEFAULT_SEPARATORS,
) -> list[str]:
    """
    Split text into ordered, overlapping chunks.

    Each chunk is at most chunk_size characters; consecutive chunks share up to
    overlap characters of trailing/leading text.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError("overlap must be >= 0 and smaller than chunk_size")
    if not text or not text.strip():
        return []

    chunks: list[str] = []
    window: list[str] = []
    total = 0
    for piece in _split_pieces(text, chunk_size, separators):
        if window and total + len(piece) > chunk_size:
            chunk = "".join(window).strip()
            if chunk:
                chunks.append(chunk)
            while window and (total > overlap or total + len(piece) > chunk_size):
                total -= len(window.pop(0))
        window.append(piece)
        total += len(piece)

    tail = "".join(window).strip()
    if tail:
        chunks.append(tail)
    return chunks
