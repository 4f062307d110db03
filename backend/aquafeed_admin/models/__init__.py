"""Pydantic models for the documents served by the backend API."""

from .common import (
    BackendModel,
    Document,
    Ref,
    PageMeta,
    NutrientRange,
)
from .ingredients import (
    Ingredient,
    IngredientNutrients,
    IngredientListResponse,
)
from .categories import (
    Category,
    CategoryType,
    CategoryListResponse,
)
from .standards import (
    FeedStandard,
    TargetNutrients,
    StandardListResponse,
)
from .templates import (
    FeedTemplate,
    TemplateItem,
    TemplateListResponse,
)
from .alternatives import (
    AlternativeRule,
    RuleListResponse,
)
from .users import (
    User,
    UserListResponse,
)
from .farms import (
    FarmProfile,
    FarmLocation,
    Pond,
    FarmListResponse,
)
from .formulations import (
    Formulation,
    IngredientUsed,
    FormulationListResponse,
)
from .transactions import (
    Transaction,
    TransactionSummary,
    TransactionListResponse,
)
from .configuration import (
    ConfigEntry,
    ConfigListResponse,
)
from .auth import (
    OTPRequest,
    OTPVerifyRequest,
    SessionUser,
)
from .dashboard import (
    SystemStats,
    ChartData,
    DashboardOverview,
)

__all__ = [
    # Common
    "BackendModel",
    "Document",
    "Ref",
    "PageMeta",
    "NutrientRange",
    # Catalogue
    "Ingredient",
    "IngredientNutrients",
    "IngredientListResponse",
    "Category",
    "CategoryType",
    "CategoryListResponse",
    "FeedStandard",
    "TargetNutrients",
    "StandardListResponse",
    "FeedTemplate",
    "TemplateItem",
    "TemplateListResponse",
    "AlternativeRule",
    "RuleListResponse",
    # Accounts and activity
    "User",
    "UserListResponse",
    "FarmProfile",
    "FarmLocation",
    "Pond",
    "FarmListResponse",
    "Formulation",
    "IngredientUsed",
    "FormulationListResponse",
    "Transaction",
    "TransactionSummary",
    "TransactionListResponse",
    "ConfigEntry",
    "ConfigListResponse",
    # Auth
    "OTPRequest",
    "OTPVerifyRequest",
    "SessionUser",
    # Dashboard
    "SystemStats",
    "ChartData",
    "DashboardOverview",
]
