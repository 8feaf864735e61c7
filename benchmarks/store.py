"""
Benchmark Record Storage

SQLite table of scored votes. One row per BenchmarkRecord, insert-only.
"""

import sqlite3
import logging
import threading
from dataclasses import fields
from typing import Dict, Any, List, Optional

from benchmarks.scorer import BenchmarkRecord
from config.settings import BENCHMARKS

logger = logging.getLogger(__name__)

COLUMNS = [f.name for f in fields(BenchmarkRecord)]

_SQL_TYPES = {
    "provider_price": "REAL",
    "provider_confidence": "REAL",
    "response_time_ms": "INTEGER",
    "ground_truth_price": "REAL",
    "price_error_dollars": "REAL",
    "price_error_percent": "REAL",
    "decision_correct": "INTEGER",
    "category_confidence": "REAL",
    "authority_price": "REAL",
    "market_median_price": "REAL",
    "market_listing_count": "INTEGER",
    "consensus_price": "REAL",
    "consensus_confidence": "INTEGER",
    "total_votes": "INTEGER",
    "had_image": "INTEGER",
}


class BenchmarkStore:
    def __init__(self, path: str = None):
        self.path = str(path or BENCHMARKS.db_path)
        self._lock = threading.Lock()
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_db()
        logger.info(f"[BENCHMARK] Store initialized at: {self.path}")

    def _init_db(self):
        column_defs = ",\n                ".join(
            f"{name} {_SQL_TYPES.get(name, 'TEXT')}" for name in COLUMNS
        )
        self.conn.execute(f"""
            CREATE TABLE IF NOT EXISTS provider_benchmarks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                {column_defs}
            )
        """)
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_benchmarks_provider ON provider_benchmarks(provider_id, created_at)"
        )
        self.conn.commit()

    def save_records(self, records: List[BenchmarkRecord]) -> int:
        """Insert records; returns the number written"""
        if not records:
            return 0
        placeholders = ", ".join("?" for _ in COLUMNS)
        rows = [tuple(getattr(r, name) for name in COLUMNS) for r in records]
        with self._lock:
            self.conn.executemany(
                f"INSERT INTO provider_benchmarks ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                rows,
            )
            self.conn.commit()
        return len(rows)

    def fetch_records(
        self,
        provider: Optional[str] = None,
        since: Optional[str] = None,
        limit: int = 10000,
    ) -> List[BenchmarkRecord]:
        """Records in insertion order, optionally filtered by provider and ISO timestamp"""
        query = f"SELECT {', '.join(COLUMNS)} FROM provider_benchmarks WHERE 1=1"
        params: List[Any] = []
        if provider:
            query += " AND provider_id = ?"
            params.append(provider)
        if since:
            query += " AND created_at >= ?"
            params.append(since)
        query += " ORDER BY id LIMIT ?"
        params.append(limit)

        with self._lock:
            rows = self.conn.execute(query, params).fetchall()
        return [_row_to_record(row) for row in rows]

    def count(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM provider_benchmarks").fetchone()[0]

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None


def _row_to_record(row: sqlite3.Row) -> BenchmarkRecord:
    data: Dict[str, Any] = dict(row)
    if data.get("decision_correct") is not None:
        data["decision_correct"] = bool(data["decision_correct"])
    data["had_image"] = bool(data.get("had_image"))
    return BenchmarkRecord(**data)
