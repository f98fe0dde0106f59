from core.api import OwnedObjectView, OwnedCollectionView, json_response
from core.errors import ValidationError
from core.payloads import Field, parse_payload, short_text, string_list, text

from .models import Document
from .storage import decode_file_content, discard_document, store_document

UPLOAD_FIELDS = {
    "name": Field("name", short_text, required=True),
    "type": Field("doc_type", lambda value: text(value, max_length=50)),
    "tags": Field("tags", string_list),
}


def _document_json(document: Document) -> dict:
    return {
        "id": document.pk,
        "userId": document.user_id,
        "name": document.name,
        "path": document.file.name,
        "url": document.file.url if document.file else "",
        "type": document.doc_type,
        "contentType": document.content_type,
        "size": document.size,
        "tags": document.tags,
        "uploadDate": document.upload_date,
    }


class DocumentListView(OwnedCollectionView):
    model = Document
    ordering = ("-upload_date", "-id")

    def serialize(self, obj):
        return _document_json(obj)

    def post(self, request):
        payload = self.payload(request)
        if not payload.get("name") or not payload.get("fileContent"):
            raise ValidationError("Name and file content are required")
        data = parse_payload(payload, UPLOAD_FIELDS)
        content, content_type = decode_file_content(payload["fileContent"], data["name"])
        document = store_document(
            request.api_user,
            name=data["name"],
            data=content,
            content_type=content_type,
            doc_type=data.get("doc_type") or "document",
            tags=data.get("tags") or [],
        )
        return json_response(_document_json(document), status=201)


class DocumentDetailView(OwnedObjectView):
    model = Document
    label = "Document"
    http_method_names = ["get", "delete", "options"]

    def serialize(self, obj):
        return _document_json(obj)

    def perform_delete(self, obj):
        discard_document(obj)
