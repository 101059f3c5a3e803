"""Runtime settings shared by the catalogue, inventory and ordering contexts.

Protean domains keep their own (default, in-memory) provider configuration.
These settings cover the stock ledger database and the marketplace limits
that are not part of any single aggregate.
"""

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


class Settings:
    def __init__(self):
        self.stock_database_url: str = os.getenv("STOCK_DATABASE_URL", "sqlite:///stock.db")
        self.stock_database_echo: bool = os.getenv("STOCK_DATABASE_ECHO", "False").lower() == "true"
        # Seconds a SQLite writer waits for the database lock before giving up
        self.stock_lock_timeout: int = _env_int("STOCK_LOCK_TIMEOUT", 15)

        self.max_variant_combinations: int = _env_int("MAX_VARIANT_COMBINATIONS", 250)
        self.cart_max_line_quantity: int = _env_int("CART_MAX_LINE_QUANTITY", 10)
        self.low_stock_threshold: int = _env_int("LOW_STOCK_THRESHOLD", 5)


settings = Settings()
