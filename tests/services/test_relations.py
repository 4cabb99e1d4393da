"""Tests for the declarative relation expander."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Iterable

from enrollview.repos.document_store import Document, InMemoryDocumentStore
from enrollview.services.relations import Relation, expand, expand_one


class CountingStore(InMemoryDocumentStore):
    """Records every batched lookup the expander issues."""

    def __init__(self) -> None:
        super().__init__()
        self.lookups: list[tuple[str, tuple[str, ...]]] = []

    async def find_by_ids(
        self, collection: str, ids: Iterable[str], *, include_deleted: bool = False
    ) -> dict[str, Document]:
        ids = tuple(ids)
        self.lookups.append((collection, ids))
        return await super().find_by_ids(collection, ids, include_deleted=include_deleted)


def _seed(store: InMemoryDocumentStore) -> None:
    async def go() -> None:
        await store.insert_many(
            "files",
            [
                {"id": "f1", "path": "/a.mp4", "time_length": 60},
                {"id": "f2", "path": "/b.mp4", "time_length": 30},
            ],
        )
        await store.insert_many(
            "lectures",
            [
                {"id": "l1", "title": "One", "video_id": "f1"},
                {"id": "l2", "title": "Two", "video_id": "f2"},
                {"id": "l3", "title": "Gone", "is_deleted": True},
            ],
        )
        await store.insert_many(
            "courses",
            [
                {
                    "id": "c1",
                    "title": "Course 1",
                    "sections": [
                        {"items": [{"kind": "lecture", "lecture_id": "l1"}]},
                        {
                            "items": [
                                {"kind": "lecture", "lecture_id": "l2"},
                                {"kind": "lecture", "lecture_id": "l3"},
                            ]
                        },
                    ],
                },
                {
                    "id": "c2",
                    "title": "Course 2",
                    "sections": [{"items": [{"kind": "lecture", "lecture_id": "l1"}]}],
                },
            ],
        )

    asyncio.run(go())


COURSE_TREE = (
    Relation(
        "course_id",
        "courses",
        nested=(
            Relation(
                "sections.items.lecture_id",
                "lectures",
                nested=(Relation("video_id", "files"),),
            ),
        ),
    ),
)


def test_expands_nested_references() -> None:
    store = InMemoryDocumentStore()
    _seed(store)
    doc = asyncio.run(expand_one(store, {"id": "e1", "course_id": "c1"}, COURSE_TREE))

    course = doc["course_id"]
    assert course["title"] == "Course 1"
    first = course["sections"][0]["items"][0]["lecture_id"]
    assert first["title"] == "One"
    assert first["video_id"]["time_length"] == 60


def test_dangling_single_reference_becomes_none() -> None:
    store = InMemoryDocumentStore()
    _seed(store)
    doc = asyncio.run(expand_one(store, {"id": "e1", "course_id": "c1"}, COURSE_TREE))
    # l3 is soft-deleted, so it resolves like a missing document.
    third = doc["course_id"]["sections"][1]["items"][1]
    assert third["lecture_id"] is None


def test_missing_top_level_reference() -> None:
    store = InMemoryDocumentStore()
    _seed(store)
    doc = asyncio.run(expand_one(store, {"id": "e1", "course_id": "nope"}, COURSE_TREE))
    assert doc["course_id"] is None


def test_dangling_array_entries_are_dropped() -> None:
    store = InMemoryDocumentStore()
    _seed(store)
    doc = {"id": "p1", "lecture_ids": ["l1", "missing", "l2"]}
    out = asyncio.run(expand_one(store, doc, (Relation("lecture_ids", "lectures"),)))
    assert [lec["id"] for lec in out["lecture_ids"]] == ["l1", "l2"]


def test_select_projects_fields() -> None:
    store = InMemoryDocumentStore()
    asyncio.run(
        store.save("users", {"id": "u1", "name": "Ada", "email": "a@x.io", "secret": "s"})
    )
    out = asyncio.run(
        expand_one(
            store,
            {"id": "e1", "updated_by": "u1"},
            (Relation("updated_by", "users", select=("name", "email")),),
        )
    )
    assert out["updated_by"] == {"id": "u1", "name": "Ada", "email": "a@x.io"}


def test_one_lookup_per_collection_per_depth() -> None:
    store = CountingStore()
    _seed(store)
    enrollments = [
        {"id": f"e{i}", "course_id": "c1" if i % 2 else "c2"} for i in range(10)
    ]
    store.lookups.clear()

    out = asyncio.run(expand(store, enrollments, COURSE_TREE))

    assert len(out) == 10
    assert [collection for collection, _ in store.lookups] == [
        "courses",
        "lectures",
        "files",
    ]
    assert store.lookups[0][1] == ("c1", "c2")
    assert store.lookups[1][1] == ("l1", "l2", "l3")


def test_inputs_are_not_mutated() -> None:
    store = InMemoryDocumentStore()
    _seed(store)
    docs = [{"id": "e1", "course_id": "c1"}]
    snapshot = copy.deepcopy(docs)
    asyncio.run(expand(store, docs, COURSE_TREE))
    assert docs == snapshot


def test_shared_targets_are_independent_copies() -> None:
    store = InMemoryDocumentStore()
    _seed(store)
    out = asyncio.run(
        expand(
            store,
            [{"id": "e1", "course_id": "c1"}, {"id": "e2", "course_id": "c1"}],
            COURSE_TREE,
        )
    )
    out[0]["course_id"]["title"] = "changed"
    assert out[1]["course_id"]["title"] == "Course 1"


def test_no_references_means_no_lookups() -> None:
    store = CountingStore()
    out = asyncio.run(expand(store, [{"id": "e1"}], COURSE_TREE))
    assert out == [{"id": "e1"}]
    assert store.lookups == []
