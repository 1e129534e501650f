import codecs
import logging
from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path

from memreport.common import ReportCollection, SnapshotSummary
from memreport.parser_common import (
    CATEGORY_BINNED_MEMORY,
    CATEGORY_MEMORY,
    CATEGORY_OBJECT_CLASSES,
    CATEGORY_RHI_MEMORY,
    OBJECT_LIST_CATEGORIES,
    LineSample,
    decode_binned_allocator_line,
    decode_dash_separated_row,
    decode_object_class_row,
    decode_object_row,
    decode_persistent_level_row,
    decode_pool_stats_row,
    decode_render_target_row,
    decode_texture_line,
)

logger = logging.getLogger(__name__)


class ParseState(Enum):
    SEARCHING = 0
    MEMORY_STATS = 1
    OBJECT_CLASS_LIST = 2
    OBJECT_LIST = 3
    RHI_STATS = 4
    PERSISTENT_LEVEL = 5
    BINNED_ALLOCATOR_STATS = 6
    POOL_STATS = 7
    POOLED_RENDER_TARGETS = 8
    TEXTURE_LIST = 9


# Checked in order on every line, the first match wins
SECTION_TRIGGERS: list[tuple[Callable[[str], bool], ParseState]] = [
    (lambda line: "Obj List:" in line, ParseState.OBJECT_CLASS_LIST),
    (lambda line: "persistent level:" in line, ParseState.PERSISTENT_LEVEL),
    (lambda line: line.casefold() == "memory stats:", ParseState.MEMORY_STATS),
    (lambda line: "RHI resource memory" in line, ParseState.RHI_STATS),
    (lambda line: "Allocator Stats for binned:" in line, ParseState.BINNED_ALLOCATOR_STATS),
    (lambda line: "Block Size Num Pools" in line, ParseState.POOL_STATS),
    (lambda line: "Pooled Render Targets:" in line, ParseState.POOLED_RENDER_TARGETS),
    (lambda line: "Listing all textures." in line, ParseState.TEXTURE_LIST),
]

# A line ending its section is not decoded
SECTION_EXITS: dict[ParseState, Callable[[str], bool]] = {
    ParseState.OBJECT_CLASS_LIST: lambda line: "Objects (Total:" in line,
    ParseState.OBJECT_LIST: lambda line: "Class    Count      NumKB      MaxKB" in line,
    ParseState.POOLED_RENDER_TARGETS: lambda line: "render targets" in line,
    ParseState.TEXTURE_LIST: lambda line: line == "",
}


def resolve_object_list_section(line: str) -> tuple[ParseState, str]:
    """
    Picks the object list flavour from an ``Obj List:`` header.

    ``Obj List: class=SoundWave -alphasort`` lists single objects of one class,
    any other header lists totals per class.
    """
    class_name = ""
    if "class=" in line:
        class_name = line.replace("-alphasort", "").strip().replace("Obj List: class=", "").strip()

    category = OBJECT_LIST_CATEGORIES.get(class_name)
    if category is None:
        return ParseState.OBJECT_CLASS_LIST, CATEGORY_OBJECT_CLASSES
    return ParseState.OBJECT_LIST, category


def match_section_trigger(line: str) -> tuple[ParseState, str | None] | None:
    """Returns the section a line opens and, for object lists, its category."""
    for matches, state in SECTION_TRIGGERS:
        if matches(line):
            if state == ParseState.OBJECT_CLASS_LIST:
                return resolve_object_list_section(line)
            if state == ParseState.BINNED_ALLOCATOR_STATS:
                return state, CATEGORY_BINNED_MEMORY
            return state, None
    return None


class ReportParser:
    """
    Line oriented state machine over one memreport at a time.

    Every line is first checked against the section triggers, then handed
    to the decoder of whatever section is active afterwards. Decoded
    samples are recorded into the shared collection under the current
    snapshot label.
    """

    collection: ReportCollection
    state: ParseState
    active_category: str | None

    _decoders: dict[ParseState, Callable[[str], list[LineSample]]]

    def __init__(self, collection: ReportCollection | None = None) -> None:
        self.collection = collection if collection is not None else ReportCollection()
        self.state = ParseState.SEARCHING
        self.active_category = None
        self._decoders = {
            ParseState.MEMORY_STATS: lambda line: decode_dash_separated_row(line, CATEGORY_MEMORY),
            ParseState.RHI_STATS: lambda line: decode_dash_separated_row(line, CATEGORY_RHI_MEMORY),
            ParseState.OBJECT_CLASS_LIST: lambda line: decode_object_class_row(line, self._object_category()),
            ParseState.OBJECT_LIST: lambda line: decode_object_row(line, self._object_category()),
            ParseState.PERSISTENT_LEVEL: decode_persistent_level_row,
            ParseState.BINNED_ALLOCATOR_STATS: decode_binned_allocator_line,
            ParseState.POOL_STATS: decode_pool_stats_row,
            ParseState.POOLED_RENDER_TARGETS: decode_render_target_row,
            ParseState.TEXTURE_LIST: decode_texture_line,
        }

    def _object_category(self) -> str:
        return self.active_category or CATEGORY_OBJECT_CLASSES

    def reset(self) -> None:
        self.state = ParseState.SEARCHING
        self.active_category = None

    def _enter_section(self, state: ParseState, category: str | None) -> None:
        if state != self.state:
            logger.debug(f"entering section {state.name}")
        self.state = state
        if category is not None:
            self.active_category = category
            self.collection.table(category)

    def decode(self, line: str) -> list[LineSample] | None:
        """
        Advances the state machine by one line without recording anything.

        Returns None when no section consumed the line (searching, or the
        line closed its section), otherwise the decoded samples, which may
        be empty when the line did not match the section layout.
        """
        trigger = match_section_trigger(line)
        if trigger is not None:
            self._enter_section(*trigger)

        if self.state == ParseState.SEARCHING:
            return None

        is_exit = SECTION_EXITS.get(self.state)
        if is_exit is not None and is_exit(line):
            logger.debug(f"leaving section {self.state.name}")
            self.state = ParseState.SEARCHING
            return None

        return self._decoders[self.state](line)

    def feed(self, line: str, snapshot: str, summary: SnapshotSummary | None = None) -> list[LineSample]:
        samples = self.decode(line)
        if summary is not None:
            summary.line_count += 1
            if samples is not None:
                summary.sample_count += len(samples)
                if not samples:
                    summary.skipped_count += 1

        for s in samples or []:
            self.collection.record_sample(s.category, snapshot, s.subject, s.value)
        return samples or []

    def parse_lines(self, lines: Iterable[str], snapshot: str) -> SnapshotSummary:
        self.reset()
        summary = SnapshotSummary(snapshot=snapshot)
        for line in lines:
            self.feed(line, snapshot, summary)
        return summary


def read_report_lines(path: Path | str) -> list[str]:
    """Reads a report, honouring a UTF-16 byte order mark when present."""
    with open(path, "rb") as file:
        raw = file.read()

    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        text = raw.decode("utf-16", errors="replace")
    else:
        text = raw.decode("utf-8-sig", errors="replace")
    return text.splitlines()


def parse_memreport_file(path: Path | str, parser: ReportParser) -> SnapshotSummary:
    """Parses one report into the parser's collection, the snapshot label is the file stem."""
    path = Path(path)
    summary = parser.parse_lines(read_report_lines(path), snapshot=path.stem)
    summary.path = path
    logger.debug(
        f"'{path.name}': {summary.line_count} lines, {summary.sample_count} samples, "
        f"{summary.skipped_count} skipped"
    )
    return summary


def parse_memreport_files(
    paths: Iterable[Path | str],
) -> tuple[ReportCollection, list[SnapshotSummary]]:
    """
    Parses every report in sorted filename order into one collection, so
    each subject's series runs chronologically across snapshots. Unreadable
    files are logged and skipped.
    """
    parser = ReportParser()
    summaries: list[SnapshotSummary] = []
    for path in sorted(Path(p) for p in paths):
        logger.info(f"parsing memreport '{path}'")
        try:
            summaries.append(parse_memreport_file(path, parser))
        except OSError as e:
            logger.warning(f"failed to read memreport '{path}', skipping. ({e})")
    return parser.collection, summaries
