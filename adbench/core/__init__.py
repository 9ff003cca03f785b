"""
Infrastructure for the ad benchmark service: Settings, the asyncpg pool and
the FastAPI dependencies built on them.

    from adbench.core import get_settings, DBSessionDep, RatesDep
"""

from adbench.core.config import Settings, get_settings
from adbench.core.database import init_db, close_db, get_db_pool
from adbench.core.dependencies import (
    get_db_session,
    get_exchange_rates,
    get_exchange_rates_or_fallback,
    get_optional_db_session,
    get_settings_dependency,
    SettingsDep,
    DBSessionDep,
    OptionalDBSessionDep,
    RatesDep,
    FallbackRatesDep,
)

__all__ = [
    # config.py
    'Settings',
    'get_settings',
    # database.py
    'init_db',
    'close_db',
    'get_db_pool',
    # dependencies.py
    'get_db_session',
    'get_exchange_rates',
    'get_exchange_rates_or_fallback',
    'get_optional_db_session',
    'get_settings_dependency',
    'SettingsDep',
    'DBSessionDep',
    'OptionalDBSessionDep',
    'RatesDep',
    'FallbackRatesDep',
]
