from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Direction(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    UNKNOWN = "unknown"


class CategoryId(str, Enum):
    """Closed set of expense categories. The parser never invents new ones."""

    INCOME = "income"
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    BILLS = "bills"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    GROCERIES = "groceries"
    TRANSFER = "transfer"
    ATM = "atm"
    OTHER = "other"


class ExpenseSource(str, Enum):
    MANUAL = "manual"
    SMS = "sms"


class CategoryInfo(BaseModel):
    id: CategoryId
    name: str
    icon: str
    color: str


DEFAULT_CATEGORIES: List[CategoryInfo] = [
    CategoryInfo(id=CategoryId.INCOME, name="Income", icon="💰", color="#00E676"),
    CategoryInfo(id=CategoryId.FOOD, name="Food & Dining", icon="🍕", color="#FF6B35"),
    CategoryInfo(id=CategoryId.TRANSPORT, name="Transport", icon="🚗", color="#4ECDC4"),
    CategoryInfo(id=CategoryId.SHOPPING, name="Shopping", icon="🛍️", color="#9B59B6"),
    CategoryInfo(id=CategoryId.BILLS, name="Bills & Utilities", icon="📄", color="#3498DB"),
    CategoryInfo(id=CategoryId.ENTERTAINMENT, name="Entertainment", icon="🎬", color="#E74C3C"),
    CategoryInfo(id=CategoryId.HEALTH, name="Health", icon="💊", color="#2ECC71"),
    CategoryInfo(id=CategoryId.GROCERIES, name="Groceries", icon="🛒", color="#F39C12"),
    CategoryInfo(id=CategoryId.TRANSFER, name="Transfer", icon="💸", color="#1ABC9C"),
    CategoryInfo(id=CategoryId.ATM, name="ATM Withdrawal", icon="🏧", color="#34495E"),
    CategoryInfo(id=CategoryId.OTHER, name="Other", icon="📌", color="#95A5A6"),
]


class RawMessage(BaseModel):
    """One SMS as observed by any of the ingestion sources."""

    body: str = Field(..., description="Message text as delivered")
    sender: str = Field(default="", description="Sender id, e.g. AD-HDFCBK")
    received_at: datetime = Field(..., description="Delivery timestamp")


class ParsedTransaction(BaseModel):
    """Result of classifying one SMS. Never persisted directly."""

    is_transaction: bool = False
    direction: Direction = Direction.UNKNOWN
    amount: Optional[Decimal] = None
    merchant: Optional[str] = Field(default=None, max_length=50)
    card_suffix: Optional[str] = Field(default=None, pattern=r"^[0-9]{4}$")
    category: CategoryId = CategoryId.OTHER
    confidence: int = 0
    raw_message: str = ""
    sender: str = ""
    received_at: datetime


class Expense(BaseModel):
    """Stored expense (or income) record.

    Field aliases mirror the JSON the mobile app stores and exports, so a
    backup produced by the app round-trips through this model.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    amount: Decimal = Field(..., gt=0)
    category: CategoryId = CategoryId.OTHER
    description: str = ""
    occurred_at: datetime = Field(..., alias="date")
    source: ExpenseSource = ExpenseSource.MANUAL
    is_income: bool = Field(default=False, alias="isIncome")
    raw_message: Optional[str] = Field(default=None, alias="rawMessage")
    sender: Optional[str] = None
    card_suffix: Optional[str] = Field(default=None, alias="cardLast4")
    confidence: Optional[int] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class IngestFailure(BaseModel):
    fingerprint: str
    sender: str
    error: str


class IngestResult(BaseModel):
    """Outcome of one ingestion batch, summarised for the caller."""

    created_expenses: List[Expense] = Field(default_factory=list)
    scanned_count: int = 0
    already_processed: int = 0
    rejected: int = 0
    failures: List[IngestFailure] = Field(default_factory=list)

    @computed_field
    @property
    def created(self) -> int:
        return len(self.created_expenses)


class ManualParseResult(BaseModel):
    success: bool
    expense: Optional[Expense] = None
    error: Optional[str] = None
    parsed: Optional[ParsedTransaction] = None
    already_processed: bool = False


class SmsSourceStatus(BaseModel):
    platform: str
    supported: bool
    permission_granted: bool
    message: str = ""


class ScanResult(BaseModel):
    success: bool
    error: Optional[str] = None
    status: SmsSourceStatus
    result: IngestResult = Field(default_factory=IngestResult)


class ParseMessageRequest(BaseModel):
    raw_message: str = Field(..., description="Raw SMS/notification text")
    sender: str = Field(default="MANUAL", description="Sender tag for the pasted text")
    timestamp: Optional[datetime] = Field(
        default=None, description="When the message was received (optional)",
    )


class IngestRequest(BaseModel):
    messages: List[RawMessage]


class ScanRequest(BaseModel):
    days: Optional[int] = Field(default=None, gt=0)
    max_count: Optional[int] = Field(default=None, gt=0)
