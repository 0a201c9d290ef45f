from .interfaces import COLLECTIONS, RecordStore
from .sqlite_store import SQLiteRecordStore
from .postgrest_store import PostgrestRecordStore

__all__ = ['COLLECTIONS', 'RecordStore', 'SQLiteRecordStore', 'PostgrestRecordStore']
