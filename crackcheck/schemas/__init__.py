from .analysis import (
    DetailedAnalysis,
    ExportPdfRequest,
    HomeownerAnalysis,
    HomeownerAnalyzeRequest,
    QuickAnalyzeRequest,
)
from .articles import ArticleCreate, ArticleUpdate
from .chat import ChatRequest, ConversationCreate
from .cracks import CrackCreate, CrackUpdate
from .credits import GrantCreditsRequest
from .professionals import ProfessionalSearchRequest
from .recommendations import RecommendationRequest, TrackRequest

__all__ = [
    "ArticleCreate",
    "ArticleUpdate",
    "ChatRequest",
    "ConversationCreate",
    "CrackCreate",
    "CrackUpdate",
    "DetailedAnalysis",
    "ExportPdfRequest",
    "GrantCreditsRequest",
    "HomeownerAnalysis",
    "HomeownerAnalyzeRequest",
    "ProfessionalSearchRequest",
    "QuickAnalyzeRequest",
    "RecommendationRequest",
    "TrackRequest",
]
