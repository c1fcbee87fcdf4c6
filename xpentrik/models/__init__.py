from .transaction_models import (
    DEFAULT_CATEGORIES,
    CategoryId,
    CategoryInfo,
    Direction,
    Expense,
    ExpenseSource,
    IngestFailure,
    IngestRequest,
    IngestResult,
    ManualParseResult,
    ParsedTransaction,
    ParseMessageRequest,
    RawMessage,
    ScanRequest,
    ScanResult,
    SmsSourceStatus,
)
from .insights import SpendingInsights, TopCategory, TopDay
