"""
Document store module.

Provides the store abstraction the orchestrator works against, with a
MongoDB implementation through Motor and an in-memory one.
"""

from convey.db.connection import DatabaseConnection
from convey.db.memory_store import MemoryDatabase, MemoryDocumentStore
from convey.db.motor_store import MotorDatabase, MotorDocumentStore
from convey.db.store import DocumentDatabase, DocumentStore, ViewRow, WriteResult

__all__ = [
    "DatabaseConnection",
    "DocumentDatabase",
    "DocumentStore",
    "MemoryDatabase",
    "MemoryDocumentStore",
    "MotorDatabase",
    "MotorDocumentStore",
    "ViewRow",
    "WriteResult",
]
