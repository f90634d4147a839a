"""Line-oriented INI document: ordered sections holding ordered entries.

The document keeps comment lines as passthrough entries attached to the section
they follow, so a load/save cycle preserves them. Blank lines are dropped while
parsing and every section is followed by exactly one blank line when written.

Lookups are first-match: duplicate section names and duplicate keys are kept
in the document, but only the first one is ever returned.

Key operations go through a :class:`Section` handle, obtained from
:meth:`Document.set_section` or :meth:`Document.add_section`. The document
level helpers (``get_value``, ``add_value``, ``remove_value``) act on the
currently selected section and raise :class:`NoSectionSelected` when there is
none.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from .errors import ConfigIssue, ErrorKind, NoSectionSelected

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

ENCODING = "utf-8"
# Undecodable bytes are carried through a rewrite unchanged.
ENCODING_ERRORS = "surrogateescape"

COMMENT_CHARS = (";", "#")


@dataclass
class Entry:
    """One line of a section: a key/value pair or a passthrough comment."""
    key: str
    value: str

    @property
    def is_comment(self) -> bool:
        return not self.key

    def render(self) -> str:
        if self.is_comment:
            return self.value
        return f"{self.key} = {self.value}"


class Section:
    """A named, ordered list of entries belonging to a document."""

    def __init__(self, name: str, document: Optional["Document"] = None) -> None:
        self.name = name
        self.entries: List[Entry] = []
        self._document = document

    def __repr__(self) -> str:
        return f"Section({self.name!r}, {len(self.entries)} entries)"

    def __len__(self) -> int:
        return len(self.entries)

    def items(self) -> Iterator[tuple[str, str]]:
        """Key/value pairs in file order, comments excluded."""
        for entry in self.entries:
            if not entry.is_comment:
                yield entry.key, entry.value

    def keys(self) -> List[str]:
        return [key for key, _ in self.items()]

    def _find(self, key: str) -> Optional[Entry]:
        if not key:
            return None
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def get_value(self, key: str) -> Optional[str]:
        """Return the value of the first entry named ``key``, or None.

        An empty string is a found value.
        """
        entry = self._find(key)
        return entry.value if entry is not None else None

    def add_value(self, key: str, value: str = "") -> None:
        """Append ``key = value``; an existing key of the same name is kept."""
        self.entries.append(Entry(key, value))
        self._touch()

    def remove_value(self, key: str) -> None:
        """Remove every entry named ``key``."""
        self.entries = [e for e in self.entries if e.is_comment or e.key != key]
        self._touch()

    def set_value(self, key: str, value: str) -> None:
        """Replace the first entry named ``key`` in place, or append it."""
        entry = self._find(key)
        if entry is None:
            self.add_value(key, value)
            return
        entry.value = value
        self._touch()

    def _touch(self) -> None:
        if self._document is not None:
            self._document.changed = True


def _parse_key(line: str) -> Optional[Entry]:
    key, sep, rest = line.partition("=")
    if not sep:
        return None
    key = key.rstrip(" ")
    if not key:
        return None
    return Entry(key, rest.lstrip(" "))


class Document:
    """In-memory INI document bound to the file it was loaded from."""

    def __init__(self) -> None:
        self.sections: List[Section] = []
        self.path: Optional[Path] = None
        self.changed = False
        self.issues: List[ConfigIssue] = []
        # Index of the selected section; len(sections) after a failed lookup.
        self._cursor: Optional[int] = None

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Do not persist a half-updated document.
        self.close(save=exc_type is None)

    def __iter__(self) -> Iterator[Section]:
        return iter(self.sections)

    # Loading

    def load(self, path: PathLike) -> bool:
        """Load and parse ``path``. Returns False if it is missing or unreadable."""
        self._reset()
        self.path = Path(path)
        try:
            with self.path.open("r", encoding=ENCODING, errors=ENCODING_ERRORS) as fh:
                self.parse(fh)
        except FileNotFoundError:
            logger.debug("Config file does not exist: %s", self.path)
            return False
        except OSError as e:
            logger.error("Cannot read %s: %s", self.path, e)
            self._io_issue(f"cannot read file: {e.strerror or e}")
            return False
        logger.debug("Loaded %d sections from %s", len(self.sections), self.path)
        return True

    def open_or_create(self, path: PathLike) -> bool:
        """Load ``path``, creating an empty file when it does not exist."""
        path = Path(path)
        if self.load(path):
            return True
        if path.exists():
            return False
        try:
            path.touch(exist_ok=False)
        except OSError as e:
            logger.error("Cannot create %s: %s", path, e)
            self._io_issue(f"cannot create file: {e.strerror or e}")
            return False
        logger.info("Created empty config file %s", path)
        return True

    def parse(self, lines: Iterable[str]) -> None:
        """Append the sections found in ``lines`` to the document.

        Malformed lines are skipped and recorded in :attr:`issues`.
        """
        for lineno, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")
            if not line:
                continue

            first = line[0]
            if first in COMMENT_CHARS:
                if self.sections:
                    self.sections[-1].entries.append(Entry("", line))
            elif first == "[":
                end = line.find("]")
                if end < 0:
                    self._structural_issue(lineno, "section header without closing ']'")
                    continue
                self.sections.append(Section(line[1:end], self))
            else:
                entry = _parse_key(line)
                if entry is None:
                    self._structural_issue(lineno, "expected 'Key = Value'")
                    continue
                if not self.sections:
                    logger.debug("Ignoring key outside of any section at line %d", lineno)
                    continue
                self.sections[-1].entries.append(entry)

    def loads(self, text: str) -> None:
        self.parse(text.splitlines())

    # Section selection

    def set_section(self, name: str) -> Optional[Section]:
        """Select the first section called ``name`` and return it.

        On a miss the selection moves past the last section, so a following
        :meth:`add_section` appends.
        """
        for index, section in enumerate(self.sections):
            if section.name == name:
                self._cursor = index
                return section
        self._cursor = len(self.sections)
        return None

    def add_section(self, name: str) -> Section:
        """Insert an empty section at the selection point and select it."""
        index = len(self.sections) if self._cursor is None else self._cursor
        section = Section(name, self)
        self.sections.insert(index, section)
        self._cursor = index
        self.changed = True
        return section

    @property
    def current(self) -> Section:
        if self._cursor is None or self._cursor >= len(self.sections):
            raise NoSectionSelected("no section selected")
        return self.sections[self._cursor]

    def section_names(self) -> List[str]:
        return [section.name for section in self.sections]

    # Key operations on the selected section

    def get_value(self, key: str) -> Optional[str]:
        return self.current.get_value(key)

    def add_value(self, key: str, value: str = "") -> None:
        self.current.add_value(key, value)

    def remove_value(self, key: str) -> None:
        self.current.remove_value(key)

    # Saving

    def dumps(self) -> str:
        lines: List[str] = []
        for section in self.sections:
            lines.append(f"[{section.name}]")
            lines.extend(entry.render() for entry in section.entries)
            lines.append("")
        return "".join(line + "\n" for line in lines)

    def write(self, path: PathLike) -> bool:
        """Serialize the whole document to ``path``, overwriting it."""
        try:
            with Path(path).open("w", encoding=ENCODING, errors=ENCODING_ERRORS) as fh:
                fh.write(self.dumps())
        except OSError as e:
            logger.error("Cannot write %s: %s", path, e)
            self._io_issue(f"cannot write file: {e.strerror or e}")
            return False
        logger.info("Wrote %d sections to %s", len(self.sections), path)
        return True

    def close(self, save: bool = True) -> bool:
        """Rewrite the file if the document changed, then drop its contents.

        Returns False only when a rewrite was needed and failed.
        """
        ok = True
        if self.changed and save and self.path is not None:
            ok = self.write(self.path)
        self.sections = []
        self._cursor = None
        self.changed = False
        return ok

    def _reset(self) -> None:
        self.sections = []
        self._cursor = None
        self.changed = False
        self.issues = []

    def _structural_issue(self, lineno: int, message: str) -> None:
        logger.warning("Skipping malformed line %d in %s: %s", lineno, self.path or "<string>", message)
        self.issues.append(ConfigIssue(ErrorKind.STRUCTURAL, message, line=lineno))

    def _io_issue(self, message: str) -> None:
        self.issues.append(ConfigIssue(ErrorKind.IO, message))
