"""
Response serializers and envelope helpers.
"""

from .response import success_envelope, pydantic_error_response

__all__ = ['success_envelope', 'pydantic_error_response']
