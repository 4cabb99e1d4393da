"""Declarative relation expansion ("populate") over the document store.

A Relation names a reference field, the collection it points into, and
optionally the relations to expand on the documents it resolves to:

    Relation("course_id", "courses", nested=(
        Relation("sections.items.lecture_id", "lectures", nested=(
            Relation("video_id", "files"),
        )),
        Relation("thumbnail_id", "files"),
    ))

Dotted paths walk through nested objects and lists, so
"sections.items.lecture_id" reaches every item of every section.

Expansion runs breadth-first: at each depth, all reference ids headed
for the same collection are gathered across every document and resolved
with ONE find_by_ids call.  A list page of 50 enrollments costs one
lookup per (collection, depth), not one per row.

Dangling references never fail the expansion: a single reference that
does not resolve becomes None, and unresolved entries of a reference
array are dropped.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from enrollview.core.metrics import RELATION_LOOKUPS
from enrollview.repos.document_store import Document, DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Relation:
    path: str
    collection: str
    nested: tuple[Relation, ...] = ()
    select: tuple[str, ...] | None = None

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self.path.split("."))


@dataclass(slots=True)
class _Slot:
    """One place in a document that holds a reference (or list of them)."""

    container: dict[str, Any]
    key: str
    relation: Relation

    def ref_ids(self) -> list[str]:
        value = self.container.get(self.key)
        if isinstance(value, list):
            return [str(v) for v in value if _is_ref(v)]
        return [str(value)] if _is_ref(value) else []

    def fill(self, found: dict[str, Document]) -> list[Document]:
        """Substitute resolved documents; returns the ones placed."""
        value = self.container.get(self.key)
        select = self.relation.select

        if isinstance(value, list):
            resolved = [
                _project(found[str(v)], select)
                for v in value
                if _is_ref(v) and str(v) in found
            ]
            if len(resolved) < len(value):
                _log_dangling(self, [str(v) for v in value if str(v) not in found])
            self.container[self.key] = resolved
            return resolved

        if not _is_ref(value):
            return []
        doc = found.get(str(value))
        if doc is None:
            _log_dangling(self, [str(value)])
            self.container[self.key] = None
            return []
        placed = _project(doc, select)
        self.container[self.key] = placed
        return [placed]


def _is_ref(value: Any) -> bool:
    return isinstance(value, str | int) and not isinstance(value, bool) and value != ""


def _project(doc: Document, select: tuple[str, ...] | None) -> Document:
    # Every placement is its own copy; the same lecture referenced twice
    # must not share nested state with its twin.
    if select is None:
        return copy.deepcopy(doc)
    return {k: copy.deepcopy(doc[k]) for k in ("id", *select) if k in doc}


def _log_dangling(slot: _Slot, missing: list[str]) -> None:
    logger.debug(
        "Dangling reference %s -> %s %s",
        slot.relation.path,
        slot.relation.collection,
        missing,
    )


def _slots(node: Any, segments: Sequence[str], relation: Relation) -> Iterator[_Slot]:
    if isinstance(node, list):
        for child in node:
            yield from _slots(child, segments, relation)
        return
    if not isinstance(node, dict):
        return

    head, *rest = segments
    if not rest:
        if head in node:
            yield _Slot(container=node, key=head, relation=relation)
        return
    yield from _slots(node.get(head), rest, relation)


async def expand(
    store: DocumentStore,
    docs: Sequence[Document],
    relations: Sequence[Relation],
) -> list[Document]:
    """Return expanded copies of `docs`; the inputs are left untouched."""
    roots = [copy.deepcopy(d) for d in docs]
    pending: list[tuple[Document, Relation]] = [
        (doc, rel) for doc in roots for rel in relations
    ]

    depth = 0
    while pending:
        by_collection: dict[str, list[_Slot]] = defaultdict(list)
        for doc, rel in pending:
            for slot in _slots(doc, rel.segments, rel):
                by_collection[rel.collection].append(slot)

        next_pending: list[tuple[Document, Relation]] = []
        for collection, slots in by_collection.items():
            ids = sorted({i for slot in slots for i in slot.ref_ids()})
            found: dict[str, Document] = {}
            if ids:
                RELATION_LOOKUPS.labels(collection=collection).inc()
                found = await store.find_by_ids(collection, ids)
                logger.debug(
                    "Resolved %d/%d %s at depth %d",
                    len(found),
                    len(ids),
                    collection,
                    depth,
                )
            for slot in slots:
                for placed in slot.fill(found):
                    next_pending.extend((placed, n) for n in slot.relation.nested)

        pending = next_pending
        depth += 1

    return roots


async def expand_one(
    store: DocumentStore, doc: Document, relations: Sequence[Relation]
) -> Document:
    (expanded,) = await expand(store, [doc], relations)
    return expanded
