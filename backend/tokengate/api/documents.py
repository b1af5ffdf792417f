"""Document endpoints (all require an access token)."""

from __future__ import annotations

from flask import Blueprint, request

from tokengate.api.deps import (
    call_service,
    current_identity,
    json_response,
    require_auth,
    service_context,
)
from tokengate.schemas import DocumentCreateSchema, DocumentSchema, DocumentSearchQuerySchema
from tokengate.services.documents import DocumentCreateIn, DocumentSearchIn, DocumentService

bp = Blueprint("documents", __name__)

document_schema = DocumentSchema()
document_list_schema = DocumentSchema(many=True)
document_create_schema = DocumentCreateSchema()
search_query_schema = DocumentSearchQuerySchema()


@bp.get("")
@require_auth
def list_documents():
    """Return documents matching ``?search=``, newest first."""

    query = search_query_schema.load(request.args)
    service = DocumentService(ctx=service_context())
    items = call_service(service, service.search, DocumentSearchIn(search=query["search"]))
    return json_response({"data": document_list_schema.dump(items)})


@bp.get("/<int:document_id>")
@require_auth
def get_document(document_id: int):
    """Return one document or 404."""

    service = DocumentService(ctx=service_context())
    doc = call_service(service, service.get, document_id)
    return json_response({"data": document_schema.dump(doc)})


@bp.post("")
@require_auth
def create_document():
    """Create a document authored by the caller."""

    payload = document_create_schema.load(request.get_json(silent=True) or {})
    identity = current_identity()
    service = DocumentService(ctx=service_context(actor_id=identity.user_id))
    doc = call_service(service, service.create, DocumentCreateIn(**payload))
    return json_response({"data": document_schema.dump(doc)}, status=201)
