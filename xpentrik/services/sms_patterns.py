"""Pattern library for Indian bank / payment-app SMS.

Every facet (amount, merchant, card suffix) is an ordered tuple. The parser
tries patterns in listed order and the first usable match wins, so anchored
formats must come before the generic fallbacks.
"""
import re
from dataclasses import dataclass
from typing import Dict, Pattern, Tuple

from ..models import CategoryId


@dataclass(frozen=True)
class NamedPattern:
    name: str
    regex: Pattern[str]


def _p(name: str, pattern: str) -> NamedPattern:
    return NamedPattern(name=name, regex=re.compile(pattern, re.IGNORECASE))


_CURRENCY = r"(?:\brs\.?|\binr|₹)"
_NUMBER = r"([0-9][0-9,]*(?:\.[0-9]{1,2})?)"
# Where a free-text merchant name stops.
_MERCHANT_END = r"(?=\s+(?:on|ref|via|upi|using|avl|info)\b|\.(?:\s|$)|,|;|$)"
_MERCHANT_NAME = r"([A-Za-z0-9&\-\. ]+?)"


AMOUNT_PATTERNS: Tuple[NamedPattern, ...] = (
    # Rs.499.00 / INR 1,500 / ₹250
    _p("currency_prefix", _CURRENCY + r"\s*" + _NUMBER),
    # debited by 1,200.00 / amount: 99
    _p(
        "keyword_prefix",
        r"\b(?:amount|amt|debited|credited|spent|paid|received|transferred)"
        r"\s*(?:of|:|by|with|for)?\s*" + _CURRENCY + r"?\s*" + _NUMBER,
    ),
    # 500 rupees / 1,250 INR
    _p("currency_suffix", _NUMBER + r"\s*(?:rs\.?|inr|₹|rupees)(?![a-z])"),
    _p(
        "txn_keyword",
        r"\b(?:debit|credit|txn|transaction)\s*(?:of|:)?\s*" + _CURRENCY + r"?\s*" + _NUMBER,
    ),
)


MERCHANT_PATTERNS: Tuple[NamedPattern, ...] = (
    # Spent Rs.657.44 On HDFC Bank Card 0586 At ZOMATO On 2026-01-08
    _p(
        "spent_on_card_at",
        r"\bspent\s+" + _CURRENCY + r"\s*[0-9][0-9,]*(?:\.[0-9]{1,2})?\s+on\s+.+?\s+at\s+"
        + _MERCHANT_NAME + _MERCHANT_END,
    ),
    # paid to / sent to / received from / NEFT from ...
    _p(
        "counterparty_verb",
        r"\b(?:paid to|sent to|received from|transferred to|transfer to|"
        r"neft from|imps from|rtgs from|deposited by)\s+" + _MERCHANT_NAME + _MERCHANT_END,
    ),
    # UPI:SWIGGY / UPI/AMAZON
    _p("upi_tag", r"\bupi[:/]\s*" + r"([A-Za-z0-9&\-\.@ ]+?)" + _MERCHANT_END),
    _p("vpa", r"\bvpa\s+([A-Za-z0-9@\.\-_]+)"),
    # generic fallback: at / to / from <NAME>
    _p("at_to_from", r"\b(?:at|to|from)\s+" + _MERCHANT_NAME + _MERCHANT_END),
)


CARD_PATTERNS: Tuple[NamedPattern, ...] = (
    # A/c XX1234, Card ending XX5678, A/C *5495
    _p(
        "masked_account",
        r"\b(?:card|a/c|ac|acct|account)\b\s*(?:no\.?|number|#|ending(?:\s+in)?)?\s*[x*]+\s*([0-9]{4})\b",
    ),
    # Card 0586, card ending 1234
    _p("plain_card", r"\bcard\s+(?:no\.?\s*)?(?:ending\s+(?:in\s+)?)?([0-9]{4})\b"),
    # 1234XXXX card
    _p("suffix_masked", r"\b([0-9]{4})[x*]+[0-9]*\s*(?:card|a/c)"),
)


DEBIT_KEYWORDS: Tuple[str, ...] = (
    "debited",
    "debit",
    "spent",
    "paid",
    "withdrawn",
    "purchase",
    "payment",
    "sent",
    "transferred",
    "deducted",
    "charged",
)

CREDIT_KEYWORDS: Tuple[str, ...] = (
    "credited",
    "credit",
    "received",
    "refund",
    "cashback",
    "deposited",
    "added",
    "reversed",
)

# Matched as substrings of the upper-cased sender id (e.g. "AD-HDFCBK").
BANK_SENDERS: Tuple[str, ...] = (
    "HDFCBK", "ICICIB", "SBIINB", "AXISBK", "KOTAKB", "PNBSMS",
    "BOIIND", "CANBNK", "UNIONB", "IABORB", "YESBNK", "INDUSB",
    "PAYTMB", "GPAY", "PHONPE", "AMAZONP", "JIOMNY", "CRED",
    "SLICE", "LAZYPAY", "SIMPL", "BHARPE", "MOBIKWI", "FREECHARGE",
)

# Generic banking tokens searched in the lower-cased body.
BANK_BODY_TOKENS: Tuple[str, ...] = ("bank", "card", "a/c", "upi")


# Declaration order is the match priority.
CATEGORY_KEYWORDS: Dict[CategoryId, Tuple[str, ...]] = {
    CategoryId.FOOD: (
        "swiggy", "zomato", "restaurant", "cafe", "food", "pizza", "burger",
        "dominos", "mcdonalds", "kfc", "starbucks", "dunkin", "subway",
        "biryani", "kitchen",
    ),
    CategoryId.TRANSPORT: (
        "uber", "ola", "rapido", "metro", "railway", "irctc", "petrol",
        "diesel", "fuel", "parking", "toll", "fastag", "cab", "auto",
    ),
    CategoryId.SHOPPING: (
        "amazon", "flipkart", "myntra", "ajio", "nykaa", "meesho", "snapdeal",
        "shopclues", "mall", "store", "mart", "retail",
    ),
    CategoryId.BILLS: (
        "electricity", "water", "gas", "broadband", "wifi", "internet",
        "mobile", "recharge", "dth", "tatasky", "airtel", "jio", "vi ",
        "bsnl", "bill",
    ),
    CategoryId.ENTERTAINMENT: (
        "netflix", "prime", "hotstar", "spotify", "gaana", "youtube", "movie",
        "pvr", "inox", "cinema", "bookmyshow", "game",
    ),
    CategoryId.HEALTH: (
        "pharmacy", "medical", "hospital", "clinic", "doctor", "apollo",
        "medplus", "1mg", "pharmeasy", "netmeds", "healthkart",
    ),
    CategoryId.GROCERIES: (
        "bigbasket", "grofers", "blinkit", "zepto", "instamart", "dmart",
        "reliance", "more", "grocery", "supermarket", "vegetables", "fruits",
    ),
    CategoryId.TRANSFER: ("transfer", "sent to", "neft", "imps", "rtgs", "upi"),
    CategoryId.ATM: ("atm", "withdrawal", "cash withdrawal", "withdrawn"),
}


# Cheap pre-filter used by the background capture receiver.
RECEIVER_SENDER_FRAGMENTS: Tuple[str, ...] = (
    "HDFC", "ICICI", "SBI", "AXIS", "KOTAK", "PNB", "BOI", "CANARA",
    "UNION", "IOB", "YES", "INDUS", "PAYTM", "GPAY", "PHONPE",
    "AMAZON", "CRED", "SLICE", "LAZYPAY",
)

RECEIVER_BODY_KEYWORDS: Tuple[str, ...] = (
    "spent", "debited", "credited", "sent", "received", "paid",
    "withdrawn", "rs.", "rs ", "inr", "₹",
)
