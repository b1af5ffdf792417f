"""Document Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class DocumentSearchQuerySchema(Schema):
    """Query string for ``GET /documents``."""

    class Meta:
        unknown = EXCLUDE

    search = fields.String(load_default=None, validate=validate.Length(max=200))


class DocumentCreateSchema(Schema):
    """Input payload for creating a document."""

    class Meta:
        unknown = EXCLUDE

    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    content = fields.String(load_default="")
    category = fields.String(load_default="", validate=validate.Length(max=100))


class DocumentSchema(Schema):
    """Public representation of a document."""

    id = fields.Integer(required=True)
    title = fields.String(required=True)
    content = fields.String(required=True)
    category = fields.String(required=True)
    created_at = fields.DateTime(required=True, data_key="createdAt")
    user_id = fields.Integer(allow_none=True, data_key="userId")
