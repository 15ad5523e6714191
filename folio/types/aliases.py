from typing import Any

# -------- Aliases (clarify intent) --------
Ticker = str  # market symbol as supplied, e.g. "AAPL", "ENI.MI"
PortfolioName = str
DateFormat = str  # strptime pattern, e.g. "%d/%m/%Y"
AuditRecord = dict[str, Any]
