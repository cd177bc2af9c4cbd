from marshmallow import Schema, fields


class ChannelOutSchema(Schema):
    id = fields.String(data_key="_id")
    full_name = fields.String(data_key="fullName")
    username = fields.String()
    email = fields.String()
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage", allow_none=True)
    subscribers_count = fields.Integer(data_key="subscribersCount")
    channels_subscribed_to_count = fields.Integer(data_key="channelsSubscribedToCount")
    is_subscribed = fields.Boolean(data_key="isSubscribed")


class OwnerOutSchema(Schema):
    id = fields.String(data_key="_id")
    full_name = fields.String(data_key="fullName")
    username = fields.String()
    avatar = fields.String()


class VideoOutSchema(Schema):
    id = fields.String(data_key="_id")
    video_file = fields.String(data_key="videoFile")
    thumbnail = fields.String()
    title = fields.String()
    description = fields.String(allow_none=True)
    duration = fields.Float()
    views = fields.Integer()
    is_published = fields.Boolean(data_key="isPublished")
    # a single object, never a list
    owner = fields.Nested(OwnerOutSchema, allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
