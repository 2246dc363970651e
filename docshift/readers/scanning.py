"""
Character scanners shared by the line/character oriented text readers.

All scanners make a single left-to-right pass with an accumulation buffer,
a small mode record and explicit transitions on the current character.
They are iterative and bounded by the input length.
"""

import re
from dataclasses import dataclass, field, replace
from typing import List, Optional, Set, Tuple

from docshift.core.node import Node
from docshift.nodes.std import wrap_inline

ESC = "\x1b"
BEL = "\x07"
FORM_FEED = "\f"

_WHITESPACE_RUN = re.compile(r"\s+")


# -------------------------------
# Quote-aware field tokenizer
# -------------------------------
@dataclass
class DelimitedRecords:
    """Records produced by scan_records()."""
    records: List[List[str]] = field(default_factory=list)
    unterminated_quote: bool = False


def _finish_field(chars: List[Tuple[str, bool]]) -> str:
    # Trim whitespace that was not inside quotes, from both ends
    start, end = 0, len(chars)
    while start < end and not chars[start][1] and chars[start][0].isspace():
        start += 1
    while end > start and not chars[end - 1][1] and chars[end - 1][0].isspace():
        end -= 1
    return "".join(c for c, _ in chars[start:end])


def scan_records(text: str, delimiter: str = ",", quote: str = '"', split_records: bool = True) -> DelimitedRecords:
    """
    Split delimited text into records of fields.

    A quote character opens a literal section in which delimiters and line
    breaks are ordinary characters; a doubled quote inside it is a literal
    quote. Whitespace outside quotes at either end of a field is trimmed.
    Blank records are skipped.

    Args:
        text: Input text
        delimiter: Field separator (',' for CSV, '\\t' for TSV)
        quote: Quote character
        split_records: If False, line breaks never end a record
    """
    result = DelimitedRecords()
    record: List[str] = []
    current: List[Tuple[str, bool]] = []
    in_quotes = False
    saw_quote = False
    i = 0
    n = len(text)

    def end_record():
        nonlocal record, saw_quote
        record.append(_finish_field(current))
        blank = len(record) == 1 and record[0] == "" and not saw_quote
        if not blank:
            result.records.append(record)
        record = []
        saw_quote = False

    while i < n:
        c = text[i]
        if in_quotes:
            if c == quote:
                if i + 1 < n and text[i + 1] == quote:
                    current.append((quote, True))
                    i += 2
                    continue
                in_quotes = False
            else:
                current.append((c, True))
            i += 1
            continue

        if c == quote:
            in_quotes = True
            saw_quote = True
        elif c == delimiter:
            record.append(_finish_field(current))
            current = []
        elif split_records and c in "\r\n":
            end_record()
            current = []
            if c == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
        else:
            current.append((c, False))
        i += 1

    if current or record or saw_quote:
        end_record()
    result.unterminated_quote = in_quotes
    return result


def split_quoted_fields(line: str, delimiter: str = ",", quote: str = '"') -> List[str]:
    '''
    Split a single record into fields.

    >>> split_quoted_fields('"hello, world",test')
    ['hello, world', 'test']
    >>> split_quoted_fields('"say ""hi"""')
    ['say "hi"']
    '''
    scanned = scan_records(line, delimiter, quote, split_records=False)
    if not scanned.records:
        return [line.strip()]
    return scanned.records[0]


# -------------------------------
# Terminal escape sequences
# -------------------------------
@dataclass(frozen=True)
class AnsiStyle:
    """Text attributes toggled by SGR escape codes."""
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False


# SGR code -> (attribute, value)
SGR_CODES = {
    "1": ("bold", True),
    "3": ("italic", True),
    "4": ("underline", True),
    "9": ("strikethrough", True),
    "22": ("bold", False),
    "23": ("italic", False),
    "24": ("underline", False),
    "29": ("strikethrough", False),
}


def apply_sgr(style: AnsiStyle, params: str, ignored: Optional[Set[str]] = None) -> AnsiStyle:
    """Apply the ';'-separated codes of one SGR sequence to a style."""
    for code in params.split(";"):
        code = code.strip()
        if code in ("", "0"):
            style = AnsiStyle()
        elif code in SGR_CODES:
            attr, value = SGR_CODES[code]
            style = replace(style, **{attr: value})
        elif ignored is not None:
            ignored.add(code)
    return style


@dataclass
class EscapeScanner:
    """
    Splits escape-annotated text into (text, style) runs.

    The style carries over between calls to feed(), the way a terminal keeps
    its attributes from one line to the next.
    """
    style: AnsiStyle = field(default_factory=AnsiStyle)
    ignored_codes: Set[str] = field(default_factory=set)
    dropped_sequences: int = 0

    def feed(self, text: str) -> List[Tuple[str, AnsiStyle]]:
        runs: List[Tuple[str, AnsiStyle]] = []
        buffer: List[str] = []
        i = 0
        n = len(text)

        def flush():
            if buffer:
                runs.append(("".join(buffer), self.style))
                buffer.clear()

        while i < n:
            c = text[i]
            if c != ESC:
                buffer.append(c)
                i += 1
                continue

            nxt = text[i + 1] if i + 1 < n else ""
            if nxt == "[":
                # CSI: parameters until a terminating letter
                i += 2
                params_start = i
                while i < n and not ("a" <= text[i] <= "z" or "A" <= text[i] <= "Z"):
                    i += 1
                params = text[params_start:i]
                if i < n:
                    command = text[i]
                    i += 1
                    if command == "m":
                        new_style = apply_sgr(self.style, params, self.ignored_codes)
                        if new_style != self.style:
                            flush()
                            self.style = new_style
                    else:
                        self.dropped_sequences += 1
            elif nxt == "]":
                # OSC: runs until BEL or ESC backslash
                i += 2
                while i < n and text[i] != BEL and not (text[i] == ESC and i + 1 < n and text[i + 1] == "\\"):
                    i += 1
                if i < n:
                    i += 1 if text[i] == BEL else 2
                self.dropped_sequences += 1
            else:
                # Lone ESC or a two-character sequence we don't interpret
                i += 1
                self.dropped_sequences += 1

        flush()
        return runs


def strip_escapes(text: str) -> str:
    """Remove every escape sequence, keeping only the visible text."""
    return "".join(run for run, _ in EscapeScanner().feed(text))


def styled_node(content: str, style: AnsiStyle) -> Node:
    """Wrap a text node in the inline style nodes for an ANSI style."""
    return wrap_inline(
        Node.text(content),
        bold=style.bold,
        italic=style.italic,
        underline=style.underline,
        strikethrough=style.strikethrough,
    )


# -------------------------------
# Layout-only paragraph segmentation
# -------------------------------
def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to one space and trim."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


def segment_paragraphs(text: str) -> List[str]:
    """
    Split text into paragraphs at blank lines.

    Consecutive non-blank lines are joined with a single space and internal
    whitespace runs collapse to one space.
    """
    paragraphs = []
    current: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            if current:
                paragraphs.append(collapse_whitespace(" ".join(current)))
                current = []
        else:
            current.append(stripped)
    if current:
        paragraphs.append(collapse_whitespace(" ".join(current)))
    return paragraphs


def segment_pages(text: str) -> List[List[str]]:
    """Split text into pages at form feeds, then each page into paragraphs."""
    return [segment_paragraphs(page) for page in text.split(FORM_FEED)]
