from collections.abc import Iterator
from enum import Enum
import pathlib

from pocollect.classes import CatalogEntry
from pocollect.errors import ConversionError, MissingFileError

KEY_TOKEN = "msgid "
VALUE_TOKEN = "msgstr "
FLAG_MARKER = "#,"
FUZZY_TOKEN = "fuzzy"
OBSOLETE_MARKER = "#~"


class ParserState(Enum):
    NEUTRAL = "neutral"
    IN_KEY = "in_key"
    IN_VALUE = "in_value"


class LineKind(Enum):
    FUZZY_FLAG = "fuzzy_flag"
    OBSOLETE = "obsolete"
    KEY = "key"
    VALUE = "value"
    CONTINUATION = "continuation"
    BLANK = "blank"
    OTHER = "other"


class Action(Enum):
    SET_FUZZY = "set_fuzzy"
    SET_OBSOLETE = "set_obsolete"
    START_KEY = "start_key"
    APPEND_KEY = "append_key"
    START_VALUE = "start_value"
    APPEND_VALUE = "append_value"
    FINALIZE = "finalize"
    IGNORE = "ignore"


N, K, V = ParserState.NEUTRAL, ParserState.IN_KEY, ParserState.IN_VALUE

# (state, line kind) -> (action, next state). Flag lines keep the current state.
TRANSITIONS: dict[tuple[ParserState, LineKind], tuple[Action, ParserState]] = {}
for _state in ParserState:
    TRANSITIONS[(_state, LineKind.FUZZY_FLAG)] = (Action.SET_FUZZY, _state)
    TRANSITIONS[(_state, LineKind.OBSOLETE)] = (Action.SET_OBSOLETE, _state)
    TRANSITIONS[(_state, LineKind.KEY)] = (Action.START_KEY, K)
    TRANSITIONS[(_state, LineKind.VALUE)] = (Action.START_VALUE, V)
    TRANSITIONS[(_state, LineKind.BLANK)] = (Action.FINALIZE, N)
    TRANSITIONS[(_state, LineKind.OTHER)] = (Action.IGNORE, _state)
TRANSITIONS[(N, LineKind.CONTINUATION)] = (Action.IGNORE, N)
TRANSITIONS[(K, LineKind.CONTINUATION)] = (Action.APPEND_KEY, K)
TRANSITIONS[(V, LineKind.CONTINUATION)] = (Action.APPEND_VALUE, V)


def unquote(literal: str) -> str:
    """Strip one pair of surrounding double quotes.

    Escape sequences such as ``\\"`` or ``\\n`` are kept verbatim.
    """
    if len(literal) >= 2 and literal.startswith('"') and literal.endswith('"'):
        return literal[1:-1]
    return literal


def classify_line(line: str) -> LineKind:
    if line.startswith(FLAG_MARKER) and FUZZY_TOKEN in line:
        return LineKind.FUZZY_FLAG
    if line.startswith(OBSOLETE_MARKER):
        return LineKind.OBSOLETE
    if line.startswith(KEY_TOKEN):
        return LineKind.KEY
    if line.startswith(VALUE_TOKEN):
        return LineKind.VALUE
    if len(line) >= 2 and line.startswith('"') and line.endswith('"'):
        return LineKind.CONTINUATION
    if line == "":
        return LineKind.BLANK
    return LineKind.OTHER


class CatalogParser:
    """Line scanner turning PO text into catalog entries.

    One instance parses one catalog; ``feed`` returns the entry finalized by
    the line, if any, and ``finish`` flushes whatever is still buffered.
    """

    def __init__(self) -> None:
        self.state = ParserState.NEUTRAL
        self.fuzzy_pending = False
        self.obsolete_pending = False
        self._key = ""
        self._value = ""

    def feed(self, raw_line: str) -> CatalogEntry | None:
        line = raw_line.strip()
        kind = classify_line(line)
        if kind is LineKind.OBSOLETE:
            # Obsolete entries carry their msgid/msgstr after the marker.
            entry = None
            remainder = line[len(OBSOLETE_MARKER) :].strip()
            if remainder:
                entry = self._dispatch(remainder, classify_line(remainder))
            self._dispatch(line, kind)
            return entry
        return self._dispatch(line, kind)

    def finish(self) -> CatalogEntry | None:
        return self._finalize()

    def _dispatch(self, line: str, kind: LineKind) -> CatalogEntry | None:
        action, next_state = TRANSITIONS[(self.state, kind)]
        entry = None
        if action is Action.SET_FUZZY:
            self.fuzzy_pending = True
        elif action is Action.SET_OBSOLETE:
            self.obsolete_pending = True
        elif action is Action.START_KEY:
            if self.state is not ParserState.NEUTRAL:
                entry = self._finalize()
            self._key = unquote(line[len(KEY_TOKEN) :].strip())
        elif action is Action.APPEND_KEY:
            self._key += unquote(line)
        elif action is Action.START_VALUE:
            self._value = unquote(line[len(VALUE_TOKEN) :].strip())
        elif action is Action.APPEND_VALUE:
            self._value += unquote(line)
        elif action is Action.FINALIZE:
            entry = self._finalize()
        self.state = next_state
        return entry

    def _finalize(self) -> CatalogEntry | None:
        entry = None
        if self._key:
            entry = CatalogEntry(
                source_key=self._key,
                translated_text=self._value,
                is_fuzzy=self.fuzzy_pending and not self.obsolete_pending,
                is_obsolete=self.obsolete_pending,
            )
        self._key = ""
        self._value = ""
        self.fuzzy_pending = False
        self.obsolete_pending = False
        self.state = ParserState.NEUTRAL
        return entry


def parse_catalog(text: str) -> Iterator[CatalogEntry]:
    parser = CatalogParser()
    for line in text.split("\n"):
        entry = parser.feed(line)
        if entry is not None:
            yield entry
    entry = parser.finish()
    if entry is not None:
        yield entry


def read_catalog(po_file: pathlib.Path) -> str:
    if not po_file.is_file():
        raise MissingFileError(str(po_file))
    try:
        return po_file.read_text("utf-8")
    except (OSError, UnicodeDecodeError) as ex:
        raise ConversionError(f"Cannot read {po_file}: {ex}") from ex
