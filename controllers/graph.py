"""Read models over the social graph: channel profile and watch history."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from models.aggregation import ChannelProfileQuery, WatchHistoryQuery
from models.schemas.channel import ChannelOutSchema, VideoOutSchema
from models.schemas.common import is_blank
from utils.exceptions import BadRequest, NotFound

channel_out_schema = ChannelOutSchema()
videos_out_schema = VideoOutSchema(many=True)


class GraphQueryEngine:
    def __init__(self, storage):
        self.storage = storage

    async def get_channel_profile(self, username: Optional[str], viewer_id: Optional[str] = None) -> Dict[str, Any]:
        if is_blank(username):
            raise BadRequest("Username is missing")

        channel = await self.storage.aggregate(ChannelProfileQuery(username, viewer_id))
        if not channel:
            raise NotFound("Channel does not exist")
        return channel_out_schema.dump(channel[0])

    async def get_watch_history(self, user_id: str) -> List[Dict[str, Any]]:
        user = await self.storage.aggregate(WatchHistoryQuery(user_id))
        if not user:
            raise NotFound("User does not exist")
        return videos_out_schema.dump(user[0]["watch_history"])
