"""Service layer exports.

Expose the provider adapter and the answer, retrieval, composition, reindex, and profile services.
"""

from .openai_client import OpenAIService
from .answers import AnswerService
from .retriever import Retriever
from .composer import ResponseComposer
from .reindex import ReindexService
from .profiles import ProfileService

__all__ = [
    "OpenAIService",
    "AnswerService",
    "Retriever",
    "ResponseComposer",
    "ReindexService",
    "ProfileService",
]
