from datetime import timedelta

API_BASE = "https://query1.finance.yahoo.com"
SESSION_INIT_URL = "https://fc.yahoo.com"
CRUMB_PATH = "/v1/test/getcrumb"

QUOTE_SUMMARY_PATH = "/v10/finance/quoteSummary/"
QUOTE_PATH = "/v7/finance/quote"
CHART_PATH = "/v8/finance/chart/"
SEARCH_PATH = "/v1/finance/search"

FINANCE_ORIGIN = "https://finance.yahoo.com"

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 6.1; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
}

CRUMB_TTL = timedelta(minutes=10)
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 30.0

DEFAULT_QUOTE_SUMMARY_MODULES = ("summaryDetail", "defaultKeyStatistics", "financialData")
DEFAULT_HISTORY_RANGE = "1mo"
DEFAULT_HISTORY_INTERVAL = "1d"
DEFAULT_SEARCH_QUOTES_COUNT = "10"
DEFAULT_SEARCH_NEWS_COUNT = "0"

# quoteSummary presets used by the facade
PROFILE_MODULES = ("summaryProfile",)
EARNINGS_MODULES = ("earnings", "earningsHistory", "earningsTrend")
FINANCIAL_STATEMENT_MODULES = (
    "incomeStatementHistory",
    "balanceSheetHistory",
    "cashflowStatementHistory",
)
ANALYST_MODULES = ("recommendationTrend", "upgradeDowngradeHistory")
CALENDAR_MODULES = ("calendarEvents",)
OWNERSHIP_MODULES = (
    "institutionOwnership",
    "fundOwnership",
    "majorHoldersBreakdown",
    "insiderHolders",
)
