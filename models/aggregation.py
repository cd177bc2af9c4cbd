"""
Aggregation pipelines over the document view of the store.

A pipeline is a collection name plus an ordered tuple of stages:

- ``Match``     filter documents (pushed down to SQL when it is the first stage)
- ``Lookup``    join documents of another collection by key, optionally
                running a nested sub-pipeline on the joined documents
- ``AddFields`` compute new fields from expressions (``size``, ``first``,
                ``is_in``)
- ``Project``   keep only the listed fields (``id`` always kept)

The two read models of the app are named query objects built from these
stages: ``ChannelProfileQuery`` and ``WatchHistoryQuery``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

Document = Dict[str, Any]
Expression = Callable[[Document], Any]

_MANY = (list, tuple, set, frozenset)


def resolve(doc: Mapping[str, Any], path: str) -> Any:
    """Read a dotted path; walking through a list maps over its items."""
    value: Any = doc
    for part in path.split("."):
        if isinstance(value, list):
            value = [item.get(part) for item in value if isinstance(item, Mapping)]
        elif isinstance(value, Mapping):
            value = value.get(part)
        else:
            return None
    return value


def size(path: str) -> Expression:
    def _size(doc):
        value = resolve(doc, path)
        return len(value) if isinstance(value, list) else 0
    return _size


def first(path: str) -> Expression:
    def _first(doc):
        value = resolve(doc, path)
        if isinstance(value, list):
            return value[0] if value else None
        return value
    return _first


def is_in(needle: Any, path: str) -> Expression:
    def _is_in(doc):
        if needle is None:
            return False
        haystack = resolve(doc, path)
        return isinstance(haystack, list) and needle in haystack
    return _is_in


class Stage:
    async def apply(self, store, docs: List[Document]) -> List[Document]:
        raise NotImplementedError


@dataclass(frozen=True)
class Match(Stage):
    filters: Mapping[str, Any]

    def matches(self, doc: Document) -> bool:
        for name, expected in self.filters.items():
            value = doc.get(name)
            if isinstance(expected, _MANY):
                if value not in expected:
                    return False
            elif value != expected:
                return False
        return True

    async def apply(self, store, docs):
        return [doc for doc in docs if self.matches(doc)]


@dataclass(frozen=True)
class Lookup(Stage):
    """Join ``from_`` documents whose ``foreign_field`` equals ``local_field``.

    When the local value is a list, the joined documents follow the list's
    order (one entry per list item that resolves); ids that resolve to nothing
    are dropped.
    """

    from_: str
    local_field: str
    foreign_field: str
    as_: str
    pipeline: Tuple[Stage, ...] = ()

    async def apply(self, store, docs):
        keys: List[Any] = []
        for doc in docs:
            local = doc.get(self.local_field)
            if isinstance(local, list):
                keys.extend(local)
            elif local is not None:
                keys.append(local)
        keys = list(dict.fromkeys(keys))

        joined: List[Document] = await store.find(self.from_, {self.foreign_field: keys}) if keys else []
        if self.pipeline:
            joined = await Pipeline(self.from_, self.pipeline).run(store, joined)

        groups: Dict[Any, List[Document]] = {}
        for item in joined:
            groups.setdefault(item.get(self.foreign_field), []).append(item)

        out = []
        for doc in docs:
            local = doc.get(self.local_field)
            if isinstance(local, list):
                matched = [item for key in local for item in groups.get(key, [])]
            else:
                matched = list(groups.get(local, []))
            out.append({**doc, self.as_: matched})
        return out


@dataclass(frozen=True)
class AddFields(Stage):
    fields: Mapping[str, Expression]

    async def apply(self, store, docs):
        out = []
        for doc in docs:
            computed = dict(doc)
            for name, expression in self.fields.items():
                computed[name] = expression(doc)
            out.append(computed)
        return out


@dataclass(frozen=True)
class Project(Stage):
    fields: Tuple[str, ...]

    async def apply(self, store, docs):
        keep = ("id",) + tuple(name for name in self.fields if name != "id")
        return [{name: doc.get(name) for name in keep} for doc in docs]


@dataclass(frozen=True)
class Pipeline:
    collection: str
    stages: Tuple[Stage, ...] = field(default_factory=tuple)

    async def run(self, store, docs: Optional[Sequence[Document]] = None) -> List[Document]:
        """Evaluate against ``store``.

        Without ``docs`` the source collection is read from the store, using a
        leading ``Match`` as the query filter.
        """
        stages = list(self.stages)
        if docs is None:
            filters: Mapping[str, Any] = {}
            if stages and isinstance(stages[0], Match):
                filters = stages.pop(0).filters
            current = await store.find(self.collection, filters)
        else:
            current = list(docs)
        for stage in stages:
            current = await stage.apply(store, current)
        return current


class ChannelProfileQuery(Pipeline):
    """Channel card for ``username``: subscriber counts and the viewer's status."""

    def __init__(self, username: str, viewer_id: Optional[str] = None):
        stages = (
            Match({"username": username.strip().lower()}),
            Lookup("subscriptions", "id", "channel_id", "subscribers"),
            Lookup("subscriptions", "id", "subscriber_id", "subscribed_to"),
            AddFields({
                "subscribers_count": size("subscribers"),
                "channels_subscribed_to_count": size("subscribed_to"),
                "is_subscribed": is_in(viewer_id, "subscribers.subscriber_id"),
            }),
            Project((
                "full_name",
                "username",
                "subscribers_count",
                "channels_subscribed_to_count",
                "is_subscribed",
                "avatar",
                "cover_image",
                "email",
            )),
        )
        super().__init__("users", stages)


class WatchHistoryQuery(Pipeline):
    """User ``user_id`` with ``watch_history`` resolved to videos and their owner."""

    OWNER_FIELDS = ("full_name", "username", "avatar")

    def __init__(self, user_id: str):
        owner_lookup = Lookup(
            "users", "owner_id", "id", "owner",
            pipeline=(Project(self.OWNER_FIELDS),),
        )
        stages = (
            Match({"id": user_id}),
            Lookup(
                "videos", "watch_history", "id", "watch_history",
                pipeline=(owner_lookup, AddFields({"owner": first("owner")})),
            ),
        )
        super().__init__("users", stages)
