"""
Services package for Medico API
Contains the domain services behind the partner marketplace routers
"""

from .upload_store import UploadStore, UploadedFile

__all__ = [
    'UploadStore',
    'UploadedFile',
]
