"""
Base components shared by the project's API views.
"""

from .viewsets import BaseViewSet

__all__ = [
    'BaseViewSet',
]
