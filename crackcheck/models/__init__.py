from .analysis import CrackAnalysis, PDFExport
from .article import Article
from .conversation import Conversation, ConversationMessage
from .crack import CrackRecord
from .credits import CreditTransaction, UserCredits
from .error_log import ErrorLog
from .product import ProductRecommendation, RepairProduct
from .professional import Professional, ProfessionalSearchLog, UsCity

__all__ = [
    "Article",
    "Conversation",
    "ConversationMessage",
    "CrackAnalysis",
    "CrackRecord",
    "CreditTransaction",
    "ErrorLog",
    "PDFExport",
    "Professional",
    "ProfessionalSearchLog",
    "ProductRecommendation",
    "RepairProduct",
    "UsCity",
    "UserCredits",
]
