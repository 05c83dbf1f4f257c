from __future__ import annotations

import re
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional

EntryKey = namedtuple('EntryKey', ['context', 'source'])

NOTRANSLATE_FLAG = "notranslate"
_KEY_FIELDS = frozenset(EntryKey._fields)
LANGUAGE_HEADER = "Language"

_FLAG_COMMENT = re.compile(r"^#,(?P<flags>.*)$")
_FREEFORM_COMMENT = re.compile(r"^#")


def has_exclusion_flag(comments: Iterable[str], flag: str = NOTRANSLATE_FLAG) -> bool:
    """Return True if any comment marks the entry as "do not translate".

    Both the flag form (``#, fuzzy, notranslate``) and a free-form comment that
    mentions the flag (``# notranslate``) are accepted.
    """
    for comment in comments:
        trimmed = comment.strip()
        match = _FLAG_COMMENT.match(trimmed)
        if match and flag in [item.strip() for item in match.group("flags").split(",")]:
            return True
        if _FREEFORM_COMMENT.match(trimmed) and flag in trimmed:
            return True
    return False


@dataclass
class Entry:
    """One translation unit: key (msgctxt), source (msgid), target (msgstr)."""

    context: str
    source: str
    target: str = ""
    comments: list[str] = field(default_factory=list)
    linenum: int = field(default=0, compare=False)
    excluded: bool = field(init=False, compare=False)
    _owner: Optional["Document"] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.excluded = has_exclusion_flag(self.comments)

    def __setattr__(self, name: str, value) -> None:
        owner = self.__dict__.get("_owner")
        if owner is None or name not in _KEY_FIELDS:
            object.__setattr__(self, name, value)
            return
        old_key = self.key
        new_key = old_key._replace(**{name: value})
        owner._check_rekey(self, new_key)
        object.__setattr__(self, name, value)
        owner._rekey(self, old_key)

    @property
    def key(self) -> EntryKey:
        return EntryKey(self.context, self.source)

    @property
    def translated(self) -> bool:
        return self.target != ""

    def set_comments(self, comments: Iterable[str]) -> None:
        self.comments = list(comments)
        self.refresh_flags()

    def add_comment(self, comment: str, *, prepend: bool = False) -> None:
        if prepend:
            self.comments.insert(0, comment)
        else:
            self.comments.append(comment)
        self.refresh_flags()

    def refresh_flags(self) -> None:
        """Re-derive ``excluded`` after the comment list was edited in place."""
        self.excluded = has_exclusion_flag(self.comments)


class Document:
    """An in-memory PO/POT catalog: header fields plus ordered entries."""

    def __init__(self, language: str = "") -> None:
        self.headers: dict[str, str] = {}
        self._language = ""
        self._entries: list[Entry] = []
        self._index: dict[EntryKey, Entry] = {}
        if language:
            self.language = language

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> Entry:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"<Document language={self._language!r} entries={len(self._entries)}>"

    @property
    def entries(self) -> list[Entry]:
        return list(self._entries)

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, value: str) -> None:
        self._language = value
        self.headers[LANGUAGE_HEADER] = value

    @property
    def is_template(self) -> bool:
        return self._language == ""

    # ======= Headers =======
    def set_header(self, key: str, value: str) -> None:
        self.headers[key] = value
        if key == LANGUAGE_HEADER:
            self._language = value

    def get_header(self, key: str) -> str:
        return self.headers.get(key, "")

    def sync_language(self) -> None:
        """Take ``language`` from the Language header, if one is present."""
        if LANGUAGE_HEADER in self.headers:
            self._language = self.headers[LANGUAGE_HEADER]

    # ======= Entries =======
    def append(self, entry: Entry) -> Entry:
        """Add an entry; a later entry with an existing key replaces the earlier one in place."""
        existing = self._index.get(entry.key)
        if existing is not None:
            position = self._entries.index(existing)
            self._entries[position] = entry
            existing._owner = None
        else:
            self._entries.append(entry)
        self._index[entry.key] = entry
        entry._owner = self
        return entry

    def upsert(self, context: str, source: str, target: str) -> Entry:
        """Set the target of (context, source), appending a new entry if the key is unknown.

        Comments and position of an existing entry are left untouched.
        """
        entry = self._index.get(EntryKey(context, source))
        if entry is not None:
            entry.target = target
            return entry
        return self.append(Entry(context=context, source=source, target=target))

    def get_entry(self, context: str, source: str) -> Optional[Entry]:
        return self._index.get(EntryKey(context, source))

    def lookup(self, context: str, source: str) -> str:
        entry = self.get_entry(context, source)
        if entry is None:
            return ""
        return entry.target

    def is_translated(self, context: str, source: str) -> bool:
        return self.lookup(context, source) != ""

    def remove_entries(self, predicate: Callable[[Entry], bool]) -> int:
        kept: list[Entry] = []
        removed = 0
        for entry in self._entries:
            if predicate(entry):
                entry._owner = None
                removed += 1
            else:
                kept.append(entry)
        if removed:
            self._entries = kept
            self._index = {entry.key: entry for entry in kept}
        return removed

    def _check_rekey(self, entry: Entry, new_key: EntryKey) -> None:
        holder = self._index.get(new_key)
        if holder is not None and holder is not entry:
            raise ValueError(f"entry {tuple(new_key)!r} already exists")

    def _rekey(self, entry: Entry, old_key: EntryKey) -> None:
        """Move ``entry`` in the index after its context or source changed."""
        if self._index.get(old_key) is entry:
            del self._index[old_key]
        self._index[entry.key] = entry

    def pending_entries(self) -> list[Entry]:
        """Entries that still need a translation and are not flagged notranslate."""
        return [
            entry
            for entry in self._entries
            if entry.source and not entry.target and not entry.excluded
        ]

    def get_key_list(self) -> list[EntryKey]:
        return [entry.key for entry in self._entries]
