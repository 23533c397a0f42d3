from lms_admin.models.database import DocumentStore, MongoDocumentStore, get_document_store

__all__ = ["DocumentStore", "MongoDocumentStore", "get_document_store"]
