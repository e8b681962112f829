# ==========================================
# 0. HEADER DETECTION SETTINGS
# ==========================================

# Only the top of the sheet is searched; broker exports put at most a few
# title/account rows above the column header.
HEADER_SEARCH_ROWS = 10

# A cell counts towards a row's header score if it contains any of these.
HEADER_KEYWORDS = [
    'time',
    'price',
    'type',
    'volume',
    'profit',
    'symbol',
    's/l',
    't/p',
    'commission',
    'swap',
    'p/l'
]

# ==========================================
# 1. COLUMN MAPPING SETTINGS
# ==========================================

# Canonical field -> ordered (normalized alias, occurrence) candidates.
# Occurrence 1 selects the second column sharing a label, as in MetaTrader
# statements which repeat 'Time' and 'Price' for the open and close legs.
COLUMN_ALIASES = {
    'date':       [('time', 0)],
    'dateClosed': [('time', 1)],
    'symbol':     [('symbol', 0), ('instrument', 0)],
    'side':       [('type', 0), ('side', 0), ('buy sell', 0)],
    'size':       [('volume', 0), ('size', 0), ('lots', 0)],
    'entry':      [('price', 0)],
    'exit':       [('price', 1)],
    'pl':         [('pl', 0), ('p l', 0), ('profit', 0), ('net profit', 0)],
    'sl':         [('s l', 0), ('sl', 0)],
    'tp':         [('t p', 0), ('tp', 0)],
    'commission': [('commission', 0)],
    'swap':       [('swap', 0)]
}

# Fields without which no trade can be built
REQUIRED_FIELDS = ['date', 'symbol', 'side', 'size', 'entry', 'exit']

# ==========================================
# 2. FIELD NORMALISATION SETTINGS
# ==========================================

# Tried in order, most specific first. The 'Z' variant is read as UTC.
DATE_FORMATS = [
    '%Y.%m.%d %H:%M:%S',        # MetaTrader 4/5
    '%Y.%m.%d %H:%M',
    '%d.%m.%Y %H:%M:%S',        # European brokers
    '%d.%m.%Y %H:%M',
    '%m/%d/%Y %H:%M:%S',        # US brokers
    '%m/%d/%Y %H:%M',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%dT%H:%M:%S.%fZ',    # ISO 8601 with milliseconds
    '%Y-%m-%dT%H:%M:%S',        # ISO 8601
    '%Y-%m-%d'                  # Date only
]

# Day zero of spreadsheet serial dates (Excel/Lotus 1900 system)
SPREADSHEET_EPOCH = '1899-12-30'

# Timezone assumed for timestamps that carry no offset
DEFAULT_SOURCE_TIMEZONE = 'UTC'

# Missing date components in free-form strings are taken from here
FALLBACK_DEFAULT_DATE = (2001, 1, 1)

SIDE_BUY = 'Buy'
SIDE_SELL = 'Sell'

# ==========================================
# 3. FILE DECODING SETTINGS
# ==========================================

SUPPORTED_EXTENSIONS = {
    '.csv': 'csv',
    '.xlsx': 'xlsx'
}

# ==========================================
# 4. STORAGE SETTINGS
# ==========================================

DEFAULT_STORE_PATH = 'data/journal_store.pkl.gz'

TRADES_KEY = 'trades-data'
BALANCE_KEY = 'initial-balance'
SETTINGS_KEY = 'app-settings'

DEFAULT_INITIAL_BALANCE = 10000.0

# ==========================================
# 5. USER PREFERENCES
# ==========================================

DEFAULT_SETTINGS = {
    'profile': {'name': 'User', 'email': ''},
    'preferences': {'timezone': 'UTC', 'currency': 'usd'},
    'notifications': {'daily_summary': True, 'trade_alerts': False, 'weekly_report': True}
}

CURRENCY_SYMBOLS = {
    'usd': '$',
    'eur': '€',
    'gbp': '£',
    'jpy': '¥',
    'inr': '₹'
}

# ==========================================
# 6. ANALYTICS & PLOT SETTINGS
# ==========================================

WEEKDAY_LABELS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

# Trading days reported in the weekday breakdown
TRADING_WEEKDAYS = ['MON', 'TUE', 'WED', 'THU', 'FRI']

RESULTS_DIR = 'results'
PLOT_DPI = 300
