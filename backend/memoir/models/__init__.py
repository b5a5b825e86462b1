"""Convenience exports for ORM models.

Surface the SQLModel classes so calling code can import them from a single module.
"""

from .profile import Profile
from .answer import Answer
from .answer_embedding import AnswerEmbedding

__all__ = [
    "Profile",
    "Answer",
    "AnswerEmbedding",
]
