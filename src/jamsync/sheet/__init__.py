"""Song sheet module.

Provides the sheet data model and the operations built on it:
- Song / Section / Line / ChordBeat hierarchy
- Beat-position <-> word-index conversion
- Editor payload conversion and JSON serialization
- Render-time chord alignment and auto-advance timing
- In-memory song repository with full-replace saves
"""

from jamsync.sheet.models import ChordBeat, Line, Section, Song
from jamsync.sheet.position import (
    WordChord,
    clamp_chords,
    set_chord,
    split_words,
    to_beat_position,
    to_word_index,
)
from jamsync.sheet.render import (
    AutoAdvance,
    RenderedLine,
    RenderedWord,
    clamp_line_index,
    flatten_lines,
    ms_per_line,
    render_line,
)
from jamsync.sheet.repository import SongRepository
from jamsync.sheet.serializer import (
    EditorLine,
    EditorSection,
    load_song,
    save_song,
    sections_from_editor,
    sheet_to_editor,
)

__all__ = [
    "AutoAdvance",
    "ChordBeat",
    "EditorLine",
    "EditorSection",
    "Line",
    "RenderedLine",
    "RenderedWord",
    "Section",
    "Song",
    "SongRepository",
    "WordChord",
    "clamp_chords",
    "clamp_line_index",
    "flatten_lines",
    "load_song",
    "ms_per_line",
    "render_line",
    "save_song",
    "sections_from_editor",
    "set_chord",
    "sheet_to_editor",
    "split_words",
    "to_beat_position",
    "to_word_index",
]
