"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import Numeric, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

# Largest token precision the amount column holds exactly
MONEY_SCALE = 18


class ExactDecimal(TypeDecorator):
    """
    Decimal column that never goes through binary floating point.

    PostgreSQL keeps a native NUMERIC. SQLite has no decimal storage
    (NUMERIC values become REAL), so the value is kept as its plain
    decimal string there and parsed back into ``Decimal`` on load.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(80))
        return dialect.type_descriptor(self.impl)

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        value = Decimal(value)
        if dialect.name == "sqlite":
            return format(value, "f")
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> Decimal | None:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))


# Large money type for blockchain transactions
# Precision: 36 digits total, 18 after decimal point
# Suitable for: ETH (18 decimals), tokens with up to 18 decimals, BTC
BigMoneyType = ExactDecimal(36, MONEY_SCALE)
