from marshmallow import EXCLUDE, Schema, fields, pre_load


def _strip_strings(data):
    if not isinstance(data, dict):
        return data
    return {k: v.strip() if isinstance(v, str) else v for k, v in data.items()}


class _InputSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        return _strip_strings(data)


class UserRegisterSchema(_InputSchema):
    full_name = fields.String(data_key="fullName", load_default=None)
    email = fields.String(load_default=None)
    username = fields.String(load_default=None)
    password = fields.String(load_default=None, load_only=True)


class UserLoginSchema(_InputSchema):
    username = fields.String(load_default=None)
    email = fields.String(load_default=None)
    password = fields.String(load_default=None, load_only=True)


class UserUpdateSchema(_InputSchema):
    # absent keys stay absent; the controller builds a PartialUpdate from what is present
    full_name = fields.String(data_key="fullName", allow_none=True)
    email = fields.Email(allow_none=True)


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    old_password = fields.String(data_key="oldPassword", load_default=None)
    new_password = fields.String(data_key="newPassword", load_default=None)


class UserOutSchema(Schema):
    """Public profile. No password hash, no refresh token."""
    id = fields.String(data_key="_id")
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage", allow_none=True)
    watch_history = fields.List(fields.String(), data_key="watchHistory")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
