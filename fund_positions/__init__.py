# fund_positions/__init__.py
"""Fund Positions API: values a user's fund holdings from a trade and price ledger."""
