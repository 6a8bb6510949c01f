"""Append-only log of API calls, written to the `api_usage` table."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional

from sqlalchemy import insert
from sqlalchemy.engine import Engine

from weather_dashboard.db import api_usage, to_db_time, utcnow


class UsageLog:
    """Write-only sink; nothing in the service reads these rows back."""

    def __init__(self, engine: Engine, clock: Callable[[], dt.datetime] = utcnow) -> None:
        self.engine = engine
        self.clock = clock

    def record(self, endpoint: str, client_address: Optional[str], response_time_ms: int) -> None:
        stmt = insert(api_usage).values(
            endpoint=endpoint[:255],
            timestamp=to_db_time(self.clock()),
            ip_address=client_address,
            response_time=response_time_ms,
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)
