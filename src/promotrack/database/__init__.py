from .connection import DatabaseConnection
from .schema import initialize_schema

__all__ = ['DatabaseConnection', 'initialize_schema']
