"""Content Items and the Group Catalog

Drillable units (a kana and its romaji, a kanji and its meaning, a word and
its reading) are grouped into selectable sets loaded from YAML. A selection
of group ids resolves to a flat, deduplicated item set.
"""
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Literal

import yaml

from core.config import settings
from core.errors import AppError, Ok, Result, unknown_groups
from core.logging import engine_logger

log = engine_logger()

Direction = Literal["forward", "reverse"]
ContentKind = Literal["kana", "kanji", "vocabulary"]


@dataclass(frozen=True, slots=True)
class ContentItem:
    """A single drillable unit.

    `prompt_form` is the native-script side and the item's identity;
    `answer_form` is the romanized or derived side and may be shared by
    several items (ぢ and じ both read "ji").
    """
    prompt_form: str
    answer_form: str
    group_id: str

    def prompt_for(self, direction: Direction) -> str:
        return self.prompt_form if direction == "forward" else self.answer_form

    def answer_for(self, direction: Direction) -> str:
        return self.answer_form if direction == "forward" else self.prompt_form


ItemSet = tuple[ContentItem, ...]


def build_item_set(items: Iterable[ContentItem]) -> ItemSet:
    """Flatten items into an item set, keeping the first item per prompt form."""
    seen: set[str] = set()
    unique: list[ContentItem] = []
    for item in items:
        if item.prompt_form in seen:
            continue
        seen.add(item.prompt_form)
        unique.append(item)
    return tuple(unique)


@dataclass(frozen=True, slots=True)
class ContentGroup:
    id: str
    label: str
    kind: ContentKind
    items: ItemSet


class ContentCatalog:
    """In-memory lookup of content groups keyed by group id."""

    __slots__ = ("_groups",)

    def __init__(self, groups: Iterable[ContentGroup] = ()):
        self._groups: dict[str, ContentGroup] = {}
        for group in groups:
            if group.id in self._groups:
                log.warning("content_group_duplicate", group_id=group.id)
            self._groups[group.id] = group

    @classmethod
    def from_directory(cls, directory: Path) -> "ContentCatalog":
        """Load every `*.yaml` file in `directory`.

        File layout:

            kind: kana
            groups:
              - id: hiragana-a
                label: Hiragana あ row
                items: {あ: a, い: i, う: u, え: e, お: o}
        """
        groups: list[ContentGroup] = []
        paths = sorted(Path(directory).glob("*.yaml"))
        for path in paths:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            groups.extend(_parse_groups(data, source=path.name))

        log.info("content_catalog_loaded", files=len(paths), groups=len(groups))
        return cls(groups)

    def __len__(self) -> int:
        return len(self._groups)

    def groups(self, kind: ContentKind | None = None) -> list[ContentGroup]:
        return [g for g in self._groups.values() if kind is None or g.kind == kind]

    def resolve(self, selection: Iterable[str]) -> Result[ItemSet, AppError]:
        """Resolve selected group ids to a deduplicated item set.

        An empty selection resolves to an empty set; refusing to start a
        session on it is the session engine's call, not the catalog's.
        """
        group_ids = list(dict.fromkeys(selection))
        missing = [gid for gid in group_ids if gid not in self._groups]
        if missing:
            return unknown_groups(missing, origin="content_catalog")

        items = build_item_set(
            item for gid in group_ids for item in self._groups[gid].items
        )
        log.debug("selection_resolved", groups=len(group_ids), items=len(items))
        return Ok(items)


def _parse_groups(data: dict, source: str) -> list[ContentGroup]:
    kind = data.get("kind", "kana")
    groups = []
    for raw in data.get("groups") or []:
        group_id = raw.get("id")
        if not group_id:
            log.warning("content_group_skipped", source=source, reason="missing id")
            continue
        items = build_item_set(
            ContentItem(prompt_form=str(prompt), answer_form=str(answer), group_id=group_id)
            for prompt, answer in (raw.get("items") or {}).items()
        )
        groups.append(ContentGroup(
            id=group_id,
            label=raw.get("label", group_id),
            kind=raw.get("kind", kind),
            items=items,
        ))
    return groups


@lru_cache
def get_catalog() -> ContentCatalog:
    """Catalog loaded once from CONTENT_DIR."""
    return ContentCatalog.from_directory(settings.CONTENT_DIR)
