"""
Orders views package - modular view layer with mixins.
"""

from .order_viewset import OrderViewSet

__all__ = [
    'OrderViewSet',
]
