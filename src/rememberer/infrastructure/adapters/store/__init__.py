# Infrastructure Store Adapters Package
from .json_store import JsonDocumentStore
from .memory_store import InMemoryStudyStore, default_document

__all__ = ["JsonDocumentStore", "InMemoryStudyStore", "default_document"]
