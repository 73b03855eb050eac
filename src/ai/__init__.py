"""
Text-generation collaborator for the social feed.

Every public function degrades to a seeded fallback when the external
service is unavailable.
"""

from .client import AIServiceError, TextServiceClient
from .social import classify_and_pack, compose_post, improve_post

__all__ = [
    "AIServiceError",
    "TextServiceClient",
    "classify_and_pack",
    "compose_post",
    "improve_post",
]
