"""Column alias tables and export instructions for supported platforms.

Each alias table maps a canonical trade field to the column names a platform
uses for it, in priority order. Adding a broker only requires a new table.
"""

# Canonical trade fields produced by field mapping
TRADE_FIELDS = (
    "ticket",
    "position",
    "deal_entry",
    "symbol",
    "type",
    "open_time",
    "close_time",
    "volume",
    "open_price",
    "close_price",
    "pnl",
    "commission",
    "swap",
    "comment",
)

# Fields a row must resolve to be considered a trade
REQUIRED_TRADE_FIELDS = ("ticket", "type", "symbol")

METATRADER4_ALIASES: dict[str, list[str]] = {
    "ticket": ["Ticket", "Order", "#"],
    "type": ["Type", "Direction"],
    "symbol": ["Symbol", "Item", "Instrument"],
    "open_time": ["Open Time", "Time", "OpenTime"],
    "close_time": ["Close Time", "CloseTime"],
    "volume": ["Volume", "Size", "Lots"],
    "open_price": ["Open Price", "Price", "OpenPrice"],
    "close_price": ["Close Price", "ClosePrice"],
    "pnl": ["Profit", "P/L", "Profit/Loss"],
    "commission": ["Commission", "Comm"],
    "swap": ["Swap", "Rollover"],
    "comment": ["Comment"],
}

# MT5 history lists deals; each leg carries a single Time and Price, and
# legs of one position share the Position id.
METATRADER5_ALIASES: dict[str, list[str]] = {
    "ticket": ["Ticket", "Deal", "#"],
    "position": ["Position", "Ticket", "Deal", "#"],
    "deal_entry": ["Entry", "Direction"],
    "type": ["Type", "Direction", "Action"],
    "symbol": ["Symbol", "Instrument"],
    "open_time": ["Time", "Open Time", "OpenTime"],
    "close_time": ["Time", "Close Time", "CloseTime"],
    "volume": ["Volume", "Size", "Lots"],
    "open_price": ["Price", "Open Price", "OpenPrice"],
    "close_price": ["Price", "Close Price", "ClosePrice"],
    "pnl": ["Profit", "P/L", "Profit/Loss"],
    "commission": ["Commission", "Comm"],
    "swap": ["Swap", "Rollover"],
    "comment": ["Comment"],
}

# Default table for the generic path when the caller supplies none
GENERIC_ALIASES: dict[str, list[str]] = {
    "ticket": ["Ticket", "ID", "Order", "Order ID", "Deal", "#"],
    "type": ["Type", "Direction", "Side", "Action", "Buy/Sell"],
    "symbol": ["Symbol", "Instrument", "Item", "Ticker"],
    "open_time": ["Open Time", "Entry Time", "Time", "Date/Time", "Date"],
    "close_time": ["Close Time", "Exit Time"],
    "volume": ["Volume", "Size", "Lots", "Quantity", "Amount"],
    "open_price": ["Open Price", "Entry Price", "Price"],
    "close_price": ["Close Price", "Exit Price"],
    "pnl": ["Profit", "P/L", "Profit/Loss", "Realized P/L", "PnL"],
    "commission": ["Commission", "Comm", "Fees"],
    "swap": ["Swap", "Rollover"],
    "comment": ["Comment", "Notes"],
}

TRADINGVIEW_ALIASES: dict[str, str] = {
    "ticket": "ID",
    "open_time": "Open Time",
    "close_time": "Close Time",
    "symbol": "Symbol",
    "type": "Side",
    "volume": "Amount",
    "open_price": "Entry Price",
    "close_price": "Exit Price",
    "pnl": "Profit/Loss",
    "commission": "Commission",
    "swap": "Swap",
    "comment": "Notes",
}

FTMO_ALIASES: dict[str, str] = {
    "ticket": "Ticket",
    "open_time": "Open Time",
    "close_time": "Close Time",
    "symbol": "Symbol",
    "type": "Type",
    "volume": "Size",
    "open_price": "Open Price",
    "close_price": "Close Price",
    "pnl": "Profit",
    "commission": "Commission",
    "swap": "Swap",
    "comment": "Comment",
}

NINJATRADER_ALIASES: dict[str, str] = {
    "ticket": "Order ID",
    "open_time": "Entry Time",
    "close_time": "Exit Time",
    "symbol": "Instrument",
    "type": "Direction",
    "volume": "Quantity",
    "open_price": "Entry Price",
    "close_price": "Exit Price",
    "pnl": "Profit",
    "commission": "Commission",
    "comment": "Notes",
}

INTERACTIVE_BROKERS_ALIASES: dict[str, str] = {
    "ticket": "Exec ID",
    "open_time": "Date/Time",
    "symbol": "Symbol",
    "type": "Buy/Sell",
    "volume": "Quantity",
    "open_price": "Price",
    "pnl": "Realized P/L",
    "commission": "Commission",
}

# Type keywords that mark a row as an actual position action
METATRADER4_TRADE_KEYWORDS = ("buy", "sell")
METATRADER5_TRADE_KEYWORDS = ("buy", "sell", "in", "out")

# Type keywords that mark the entry leg of a multi-row position
ENTRY_KEYWORDS = ("in", "buy")

_METATRADER_STEPS = """
1. Open MetaTrader {version}
2. Open the "Toolbox"/"Terminal" window (Ctrl+T)
3. Go to the "Account History" tab
4. Right-click and choose "Save as Report" or "Save as Detailed Report"
5. Pick the CSV or HTML format
6. Save the file and import it here
"""

BROKER_INSTRUCTIONS: dict[str, str] = {
    "metatrader4": "# Exporting MetaTrader 4 history\n" + _METATRADER_STEPS.format(version=4),
    "metatrader5": "# Exporting MetaTrader 5 history\n" + _METATRADER_STEPS.format(version=5),
    "tradingview": """# Exporting TradingView history

1. Open TradingView and sign in
2. Go to "Trading History"
3. Click "Export"
4. Pick the CSV format
5. Save the file and import it here
""",
    "ftmo": """# Exporting FTMO history

1. Sign in to your FTMO account
2. Open the "Trading History" section
3. Click "Export"
4. Pick the CSV or XLSX format
5. Save the file and import it here
""",
    "ninjatrader": """# Exporting NinjaTrader history

1. Open NinjaTrader
2. Go to "Control Center" > "Trade Performance"
3. Select the period
4. Click "Export" and pick CSV
5. Save the file and import it here
""",
    "ib": """# Exporting Interactive Brokers history

1. Open the Client Portal or TWS
2. Go to "Reports" > "Flex Queries"
3. Create a query that includes "Trades"
4. Run the query and download the CSV file
5. Import the file here
""",
    "generic": """# Importing a custom export

Export your trade history as CSV, Excel or HTML with one trade per row.
Columns are matched by name (Ticket, Symbol, Type, Open Time, Close Time,
Volume, Open Price, Close Price, Profit, Commission, Swap, Comment).
""",
}
