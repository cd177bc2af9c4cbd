import pytest

from models.aggregation import (
    AddFields,
    ChannelProfileQuery,
    Lookup,
    Match,
    Pipeline,
    Project,
    first,
    is_in,
    resolve,
    size,
)
from models.subscription import Subscription
from models.video import Video
from utils.exceptions import BadRequest, NotFound


def test_resolve_walks_lists():
    doc = {"subscribers": [{"subscriber_id": "a"}, {"subscriber_id": "b"}], "owner": {"name": "x"}}

    assert resolve(doc, "subscribers.subscriber_id") == ["a", "b"]
    assert resolve(doc, "owner.name") == "x"
    assert resolve(doc, "missing.field") is None


def test_expressions():
    doc = {"items": [{"id": 1}, {"id": 2}], "empty": []}

    assert size("items")(doc) == 2
    assert size("nothing")(doc) == 0
    assert first("items")(doc) == {"id": 1}
    assert first("empty")(doc) is None
    assert is_in(2, "items.id")(doc)
    assert not is_in(3, "items.id")(doc)
    assert not is_in(None, "items.id")(doc)


@pytest.mark.asyncio
async def test_in_memory_stages():
    docs = [{"id": "1", "kind": "a", "n": [1, 2]}, {"id": "2", "kind": "b", "n": []}]

    matched = await Match({"kind": ("a", "c")}).apply(None, docs)
    assert [d["id"] for d in matched] == ["1"]

    counted = await AddFields({"count": size("n")}).apply(None, docs)
    assert [d["count"] for d in counted] == [2, 0]

    projected = await Project(("kind",)).apply(None, counted)
    assert projected == [{"id": "1", "kind": "a"}, {"id": "2", "kind": "b"}]


async def _subscribe(storage, subscriber, channel):
    await storage.new(Subscription(subscriber_id=subscriber.id, channel_id=channel.id))


@pytest.mark.asyncio
async def test_channel_profile_counts(graph, storage, user_factory):
    alice = await user_factory("alice")
    fans = [await user_factory(name) for name in ("bob", "carol", "dave")]
    followed = [await user_factory(name) for name in ("erin", "frank")]
    for fan in fans:
        await _subscribe(storage, fan, alice)
    for channel in followed:
        await _subscribe(storage, alice, channel)

    channel = await graph.get_channel_profile("alice")

    assert channel["subscribersCount"] == 3
    assert channel["channelsSubscribedToCount"] == 2
    assert channel["isSubscribed"] is False
    assert channel["username"] == "alice"
    assert channel["_id"] == alice.id
    assert set(channel) == {
        "_id", "fullName", "username", "email", "avatar", "coverImage",
        "subscribersCount", "channelsSubscribedToCount", "isSubscribed",
    }


@pytest.mark.asyncio
async def test_channel_profile_is_subscribed_for_viewer(graph, storage, user_factory):
    alice = await user_factory("alice")
    bob = await user_factory("bob")
    carol = await user_factory("carol")
    await _subscribe(storage, bob, alice)
    # carol follows bob, not alice
    await _subscribe(storage, carol, bob)

    assert (await graph.get_channel_profile("alice", bob.id))["isSubscribed"] is True
    assert (await graph.get_channel_profile("alice", carol.id))["isSubscribed"] is False
    assert (await graph.get_channel_profile("alice", None))["isSubscribed"] is False


@pytest.mark.asyncio
async def test_channel_profile_username_is_case_insensitive(graph, user_factory):
    await user_factory("alice")

    channel = await graph.get_channel_profile("  ALICE ")

    assert channel["username"] == "alice"


@pytest.mark.asyncio
async def test_channel_profile_counts_duplicate_edges(graph, storage, user_factory):
    alice = await user_factory("alice")
    bob = await user_factory("bob")
    await _subscribe(storage, bob, alice)
    await _subscribe(storage, bob, alice)

    channel = await graph.get_channel_profile("alice", bob.id)

    assert channel["subscribersCount"] == 2
    assert channel["isSubscribed"] is True


@pytest.mark.asyncio
async def test_channel_profile_errors(graph):
    with pytest.raises(BadRequest):
        await graph.get_channel_profile("   ")
    with pytest.raises(NotFound):
        await graph.get_channel_profile("nobody")


async def _video(storage, owner, title):
    video = Video(
        video_file=f"https://media.test/vidtube/{title}.mp4",
        thumbnail=f"https://media.test/vidtube/{title}.jpg",
        title=title,
        description=f"{title} description",
        duration=12.5,
        views=0,
        is_published=True,
        owner_id=owner.id if owner else None,
    )
    return await storage.new(video)


@pytest.mark.asyncio
async def test_watch_history_keeps_order_and_resolves_owner(graph, storage, user_factory):
    bob = await user_factory("bob", full_name="Bob Builder")
    carol = await user_factory("carol")
    first_video = await _video(storage, bob, "first")
    second_video = await _video(storage, carol, "second")
    third_video = await _video(storage, bob, "third")
    viewer = await user_factory(
        "alice", watch_history=[third_video.id, first_video.id, second_video.id]
    )

    history = await graph.get_watch_history(viewer.id)

    assert [v["title"] for v in history] == ["third", "first", "second"]
    owner = history[0]["owner"]
    assert isinstance(owner, dict)
    assert owner == {
        "_id": bob.id,
        "fullName": "Bob Builder",
        "username": "bob",
        "avatar": bob.avatar,
    }
    assert history[2]["owner"]["username"] == "carol"
    assert history[0]["videoFile"].endswith("third.mp4")


@pytest.mark.asyncio
async def test_watch_history_skips_unknown_videos_and_ownerless(graph, storage, user_factory):
    orphan = await _video(storage, None, "orphan")
    viewer = await user_factory("alice", watch_history=["gone", orphan.id])

    history = await graph.get_watch_history(viewer.id)

    assert len(history) == 1
    assert history[0]["title"] == "orphan"
    assert history[0]["owner"] is None


@pytest.mark.asyncio
async def test_watch_history_empty_and_missing_user(graph, user_factory):
    viewer = await user_factory("alice")

    assert await graph.get_watch_history(viewer.id) == []
    with pytest.raises(NotFound):
        await graph.get_watch_history("missing")


@pytest.mark.asyncio
async def test_pipeline_lookup_against_store(storage, user_factory):
    alice = await user_factory("alice")
    bob = await user_factory("bob")
    await _subscribe(storage, bob, alice)

    pipeline = Pipeline("users", (
        Match({"username": ["alice", "bob"]}),
        Lookup("subscriptions", "id", "channel_id", "subscribers"),
        AddFields({"n": size("subscribers")}),
        Project(("username", "n")),
    ))
    rows = await storage.aggregate(pipeline)

    assert {row["username"]: row["n"] for row in rows} == {"alice": 1, "bob": 0}


def test_channel_query_normalizes_username():
    query = ChannelProfileQuery(" Alice ")

    assert query.collection == "users"
    assert query.stages[0] == Match({"username": "alice"})
