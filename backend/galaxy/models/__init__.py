from galaxy.models.flashcard import (
    AtlasCard,
    AtlasResponse,
    CaptureRequest,
    CaptureResult,
    CardDraft,
    Category,
    CategoryStats,
    Flashcard,
    KnowledgeNode,
)
from galaxy.models.galaxy import Star, StarCount, StarField, StarPosition
from galaxy.models.review import (
    GradeReceipt,
    GradeRequest,
    GradeResponse,
    Outcome,
    ReviewQueueEntry,
    ReviewView,
    SessionState,
    WriteState,
    WriteStatus,
)

__all__ = [
    "AtlasCard",
    "AtlasResponse",
    "CaptureRequest",
    "CaptureResult",
    "CardDraft",
    "Category",
    "CategoryStats",
    "Flashcard",
    "GradeReceipt",
    "GradeRequest",
    "GradeResponse",
    "KnowledgeNode",
    "Outcome",
    "ReviewQueueEntry",
    "ReviewView",
    "SessionState",
    "Star",
    "StarCount",
    "StarField",
    "StarPosition",
    "WriteState",
    "WriteStatus",
]
