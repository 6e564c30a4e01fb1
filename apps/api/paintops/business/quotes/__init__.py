from paintops.business.quotes.models import Quote
from paintops.business.quotes.pricing import QuoteTotals, compute_quote_totals
from paintops.business.quotes.schemas import QuoteCostInput, QuoteCreate, QuotePreview, QuoteRead

__all__ = [
    "Quote",
    "QuoteTotals",
    "compute_quote_totals",
    "QuoteCostInput",
    "QuoteCreate",
    "QuotePreview",
    "QuoteRead",
]
