"""
Repository pattern for data access.

Handles database operations for subscriptions, check-ins, investments and
investment usage. Subscriptions and investments are never physically
deleted; they are deactivated.
"""

import logging
import sqlite3
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .models import Investment, InvestmentUsage, Subscription, UsageLog
from value_tracker.core.errors import (
    DuplicateCheckInError,
    InvalidInputError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS subscription (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id               TEXT NOT NULL,
    name                  TEXT NOT NULL,
    emoji_code            TEXT NOT NULL,
    period_label          TEXT NOT NULL,
    total_amount          INTEGER NOT NULL,
    monthly_amount        INTEGER NOT NULL,
    start_date            TEXT NOT NULL,
    end_date              TEXT,
    monthly_target_usage  INTEGER,
    active                INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_subscription_user ON subscription (user_id);

CREATE TABLE IF NOT EXISTS usage_log (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    subscription_id  INTEGER NOT NULL REFERENCES subscription (id),
    used_at          TEXT NOT NULL,
    note             TEXT,
    UNIQUE (subscription_id, used_at)
);

CREATE TABLE IF NOT EXISTS investment (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id              TEXT NOT NULL,
    name                 TEXT NOT NULL,
    emoji_code           TEXT NOT NULL,
    category             TEXT NOT NULL,
    purchase_price       INTEGER NOT NULL,
    purchase_date        TEXT NOT NULL,
    comparison_baseline  INTEGER NOT NULL,
    note                 TEXT,
    active               INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_investment_user ON investment (user_id);

CREATE TABLE IF NOT EXISTS investment_usage (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    investment_id   INTEGER NOT NULL REFERENCES investment (id),
    used_at         TEXT NOT NULL,
    item_name       TEXT NOT NULL,
    original_price  INTEGER NOT NULL,
    actual_price    INTEGER NOT NULL,
    source          TEXT,
    note            TEXT
);
"""


def _iso(day: Optional[date]) -> Optional[str]:
    return day.isoformat() if day is not None else None


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value is not None else None


def _subscription_from_row(row: sqlite3.Row) -> Subscription:
    return Subscription(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        emoji_code=row["emoji_code"],
        period_label=row["period_label"],
        total_amount=Decimal(row["total_amount"]),
        monthly_amount=Decimal(row["monthly_amount"]),
        start_date=_parse_date(row["start_date"]),
        end_date=_parse_date(row["end_date"]),
        monthly_target_usage=row["monthly_target_usage"],
        active=bool(row["active"]),
    )


def _usage_log_from_row(row: sqlite3.Row) -> UsageLog:
    return UsageLog(
        id=row["id"],
        subscription_id=row["subscription_id"],
        used_at=_parse_date(row["used_at"]),
        note=row["note"],
    )


def _investment_from_row(row: sqlite3.Row) -> Investment:
    return Investment(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        emoji_code=row["emoji_code"],
        category=row["category"],
        purchase_price=Decimal(row["purchase_price"]),
        purchase_date=_parse_date(row["purchase_date"]),
        comparison_baseline=Decimal(row["comparison_baseline"]),
        note=row["note"],
        active=bool(row["active"]),
    )


def _investment_usage_from_row(row: sqlite3.Row) -> InvestmentUsage:
    return InvestmentUsage(
        id=row["id"],
        investment_id=row["investment_id"],
        used_at=_parse_date(row["used_at"]),
        item_name=row["item_name"],
        original_price=Decimal(row["original_price"]),
        actual_price=Decimal(row["actual_price"]),
        source=row["source"],
        note=row["note"],
    )


def _in_clause(column: str, values: List[int]) -> str:
    return f"{column} IN ({', '.join('?' for _ in values)})"


class TrackerRepository:
    """Repository for subscriptions, investments and their usage records.

    Each method opens its own connection, so a repository instance can be
    shared freely. Reads return immutable snapshots for the calculation
    engine.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize_schema(self) -> None:
        """Create all tables if they don't exist."""
        conn = get_connection(self.db_path)
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()
        logger.info("Schema initialized at %s", self.db_path)

    # Subscriptions

    def add_subscription(self, subscription: Subscription) -> Subscription:
        """Insert a subscription and return it with its new id.

        Raises:
            InvalidInputError: If an active subscription with the same name exists
        """
        conn = get_connection(self.db_path)
        try:
            self._reject_duplicate_name(conn, subscription.user_id, subscription.name)
            cursor = conn.execute("""
                INSERT INTO subscription
                (user_id, name, emoji_code, period_label, total_amount,
                 monthly_amount, start_date, end_date, monthly_target_usage, active)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                subscription.user_id,
                subscription.name,
                subscription.emoji_code,
                subscription.period_label,
                int(subscription.total_amount),
                int(subscription.monthly_amount),
                _iso(subscription.start_date),
                _iso(subscription.end_date),
                subscription.monthly_target_usage,
                int(subscription.active),
            ))
            conn.commit()
            saved = replace(subscription, id=cursor.lastrowid)
        finally:
            conn.close()
        logger.info("Added subscription %s (%s)", saved.id, saved.name)
        return saved

    def update_subscription(self, subscription: Subscription) -> Subscription:
        """Overwrite an existing subscription owned by the same user.

        Raises:
            NotFoundError: If the subscription does not exist for the user
            InvalidInputError: If another active subscription has the same name
        """
        if subscription.id is None:
            raise InvalidInputError("Cannot update a subscription without an id")
        conn = get_connection(self.db_path)
        try:
            self._require_subscription(conn, subscription.id, subscription.user_id)
            self._reject_duplicate_name(
                conn, subscription.user_id, subscription.name, exclude_id=subscription.id
            )
            conn.execute("""
                UPDATE subscription
                SET name = ?, emoji_code = ?, period_label = ?, total_amount = ?,
                    monthly_amount = ?, start_date = ?, end_date = ?,
                    monthly_target_usage = ?
                WHERE id = ?
            """, (
                subscription.name,
                subscription.emoji_code,
                subscription.period_label,
                int(subscription.total_amount),
                int(subscription.monthly_amount),
                _iso(subscription.start_date),
                _iso(subscription.end_date),
                subscription.monthly_target_usage,
                subscription.id,
            ))
            conn.commit()
        finally:
            conn.close()
        logger.info("Updated subscription %s", subscription.id)
        return subscription

    def get_subscription(self, subscription_id: int, user_id: str) -> Subscription:
        """Fetch a subscription owned by user_id.

        Raises:
            NotFoundError: If it does not exist or belongs to another user
        """
        conn = get_connection(self.db_path)
        try:
            return _subscription_from_row(
                self._require_subscription(conn, subscription_id, user_id)
            )
        finally:
            conn.close()

    def list_active_subscriptions(self, user_id: str) -> List[Subscription]:
        """All subscriptions not soft-deleted, newest first, regardless of end date."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT * FROM subscription WHERE user_id = ? AND active = 1 ORDER BY id DESC",
                (user_id,),
            )
            return [_subscription_from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def list_current_subscriptions(self, user_id: str, today: date) -> List[Subscription]:
        """Active subscriptions whose end date is absent or not yet past."""
        return [
            sub for sub in self.list_active_subscriptions(user_id) if sub.is_current(today)
        ]

    def deactivate_subscription(self, subscription_id: int, user_id: str) -> None:
        """Soft-delete a subscription.

        Raises:
            NotFoundError: If it does not exist or belongs to another user
        """
        conn = get_connection(self.db_path)
        try:
            self._require_subscription(conn, subscription_id, user_id)
            conn.execute("UPDATE subscription SET active = 0 WHERE id = ?", (subscription_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Deactivated subscription %s", subscription_id)

    # Check-ins

    def check_in(
        self, subscription_id: int, user_id: str, day: date, note: Optional[str] = None
    ) -> UsageLog:
        """Record a check-in, rejecting a second one on the same day.

        Raises:
            NotFoundError: If the subscription does not exist for the user
            DuplicateCheckInError: If the day is already checked in
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            self._require_subscription(conn, subscription_id, user_id)
            if self._find_usage_log(conn, subscription_id, day) is not None:
                raise DuplicateCheckInError(subscription_id, day)
            try:
                cursor = conn.execute(
                    "INSERT INTO usage_log (subscription_id, used_at, note) VALUES (?, ?, ?)",
                    (subscription_id, _iso(day), note),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateCheckInError(subscription_id, day) from e
            conn.commit()
            log = UsageLog(
                id=cursor.lastrowid, subscription_id=subscription_id, used_at=day, note=note
            )
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("Checked in subscription %s on %s", subscription_id, day)
        return log

    def toggle_check_in(self, subscription_id: int, user_id: str, day: date) -> bool:
        """Flip the check-in state of a day.

        Returns:
            True if the day is now checked in, False if the check-in was removed

        Raises:
            NotFoundError: If the subscription does not exist for the user
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            self._require_subscription(conn, subscription_id, user_id)
            existing = self._find_usage_log(conn, subscription_id, day)
            if existing is not None:
                conn.execute("DELETE FROM usage_log WHERE id = ?", (existing["id"],))
                checked_in = False
            else:
                conn.execute(
                    "INSERT INTO usage_log (subscription_id, used_at) VALUES (?, ?)",
                    (subscription_id, _iso(day)),
                )
                checked_in = True
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info(
            "Toggled subscription %s on %s: %s",
            subscription_id, day, "checked in" if checked_in else "cancelled",
        )
        return checked_in

    def cancel_check_in(self, usage_log_id: int, user_id: str) -> None:
        """Delete a check-in by id.

        Raises:
            NotFoundError: If the log does not exist or its subscription is
                not owned by the user
        """
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT * FROM usage_log WHERE id = ?", (usage_log_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("Usage log", usage_log_id)
            self._require_subscription(conn, row["subscription_id"], user_id)
            conn.execute("DELETE FROM usage_log WHERE id = ?", (usage_log_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Cancelled check-in %s", usage_log_id)

    def fetch_usage_logs(
        self,
        subscription_ids: Iterable[int],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[UsageLog]:
        """Check-ins for the given subscriptions, optionally within [start, end].

        Returns:
            Usage logs ordered by date
        """
        ids = list(subscription_ids)
        if not ids:
            return []
        query = f"SELECT * FROM usage_log WHERE {_in_clause('subscription_id', ids)}"
        params: List = list(ids)
        if start is not None:
            query += " AND used_at >= ?"
            params.append(_iso(start))
        if end is not None:
            query += " AND used_at <= ?"
            params.append(_iso(end))
        query += " ORDER BY used_at, id"

        conn = get_connection(self.db_path)
        try:
            logs = [_usage_log_from_row(row) for row in conn.execute(query, params).fetchall()]
        finally:
            conn.close()
        logger.debug("Fetched %d usage logs for %d subscriptions", len(logs), len(ids))
        return logs

    def count_usage(self, subscription_id: int, start: date, end: date) -> int:
        """Number of check-ins of a subscription within [start, end]."""
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                """
                SELECT COUNT(*) FROM usage_log
                WHERE subscription_id = ? AND used_at >= ? AND used_at <= ?
                """,
                (subscription_id, _iso(start), _iso(end)),
            ).fetchone()
            return row[0]
        finally:
            conn.close()

    # Investments

    def add_investment(self, investment: Investment) -> Investment:
        """Insert an investment and return it with its new id."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                INSERT INTO investment
                (user_id, name, emoji_code, category, purchase_price,
                 purchase_date, comparison_baseline, note, active)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                investment.user_id,
                investment.name,
                investment.emoji_code,
                investment.category,
                int(investment.purchase_price),
                _iso(investment.purchase_date),
                int(investment.comparison_baseline),
                investment.note,
                int(investment.active),
            ))
            conn.commit()
            saved = replace(investment, id=cursor.lastrowid)
        finally:
            conn.close()
        logger.info("Added investment %s (%s)", saved.id, saved.name)
        return saved

    def update_investment(self, investment: Investment) -> Investment:
        """Overwrite an existing investment owned by the same user.

        Raises:
            NotFoundError: If the investment does not exist for the user
            InvalidInputError: If the investment has no id
        """
        if investment.id is None:
            raise InvalidInputError("Cannot update an investment without an id")
        conn = get_connection(self.db_path)
        try:
            self._require_investment(conn, investment.id, investment.user_id)
            conn.execute("""
                UPDATE investment
                SET name = ?, emoji_code = ?, category = ?, purchase_price = ?,
                    purchase_date = ?, comparison_baseline = ?, note = ?
                WHERE id = ?
            """, (
                investment.name,
                investment.emoji_code,
                investment.category,
                int(investment.purchase_price),
                _iso(investment.purchase_date),
                int(investment.comparison_baseline),
                investment.note,
                investment.id,
            ))
            conn.commit()
        finally:
            conn.close()
        logger.info("Updated investment %s", investment.id)
        return investment

    def get_investment(self, investment_id: int, user_id: str) -> Investment:
        """Fetch an investment owned by user_id.

        Raises:
            NotFoundError: If it does not exist or belongs to another user
        """
        conn = get_connection(self.db_path)
        try:
            return _investment_from_row(self._require_investment(conn, investment_id, user_id))
        finally:
            conn.close()

    def list_active_investments(self, user_id: str) -> List[Investment]:
        """All investments not soft-deleted, newest first."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT * FROM investment WHERE user_id = ? AND active = 1 ORDER BY id DESC",
                (user_id,),
            )
            return [_investment_from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def deactivate_investment(self, investment_id: int, user_id: str) -> None:
        """Soft-delete an investment.

        Raises:
            NotFoundError: If it does not exist or belongs to another user
        """
        conn = get_connection(self.db_path)
        try:
            self._require_investment(conn, investment_id, user_id)
            conn.execute("UPDATE investment SET active = 0 WHERE id = ?", (investment_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Deactivated investment %s", investment_id)

    def add_investment_usage(self, usage: InvestmentUsage, user_id: str) -> InvestmentUsage:
        """Append a usage record to an investment owned by user_id.

        Raises:
            NotFoundError: If the investment does not exist for the user
        """
        conn = get_connection(self.db_path)
        try:
            self._require_investment(conn, usage.investment_id, user_id)
            cursor = conn.execute("""
                INSERT INTO investment_usage
                (investment_id, used_at, item_name, original_price, actual_price, source, note)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                usage.investment_id,
                _iso(usage.used_at),
                usage.item_name,
                int(usage.original_price),
                int(usage.actual_price),
                usage.source,
                usage.note,
            ))
            conn.commit()
            saved = replace(usage, id=cursor.lastrowid)
        finally:
            conn.close()
        logger.info("Logged usage %s for investment %s", saved.id, saved.investment_id)
        return saved

    def delete_investment_usage(self, usage_id: int, user_id: str) -> None:
        """Delete a single investment usage record.

        Raises:
            NotFoundError: If the record does not exist or its investment is
                not owned by the user
        """
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT * FROM investment_usage WHERE id = ?", (usage_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("Investment usage", usage_id)
            self._require_investment(conn, row["investment_id"], user_id)
            conn.execute("DELETE FROM investment_usage WHERE id = ?", (usage_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Deleted investment usage %s", usage_id)

    def fetch_investment_usages(
        self,
        investment_ids: Iterable[int],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[InvestmentUsage]:
        """Usage records for the given investments, newest first."""
        ids = list(investment_ids)
        if not ids:
            return []
        query = f"SELECT * FROM investment_usage WHERE {_in_clause('investment_id', ids)}"
        params: List = list(ids)
        if start is not None:
            query += " AND used_at >= ?"
            params.append(_iso(start))
        if end is not None:
            query += " AND used_at <= ?"
            params.append(_iso(end))
        query += " ORDER BY used_at DESC, id DESC"

        conn = get_connection(self.db_path)
        try:
            usages = [
                _investment_usage_from_row(row) for row in conn.execute(query, params).fetchall()
            ]
        finally:
            conn.close()
        logger.debug("Fetched %d investment usages", len(usages))
        return usages

    # Helpers

    @staticmethod
    def _require_subscription(
        conn: sqlite3.Connection, subscription_id: int, user_id: str
    ) -> sqlite3.Row:
        row = conn.execute(
            "SELECT * FROM subscription WHERE id = ? AND user_id = ?",
            (subscription_id, user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError("Subscription", subscription_id)
        return row

    @staticmethod
    def _require_investment(
        conn: sqlite3.Connection, investment_id: int, user_id: str
    ) -> sqlite3.Row:
        row = conn.execute(
            "SELECT * FROM investment WHERE id = ? AND user_id = ?",
            (investment_id, user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError("Investment", investment_id)
        return row

    @staticmethod
    def _find_usage_log(
        conn: sqlite3.Connection, subscription_id: int, day: date
    ) -> Optional[sqlite3.Row]:
        return conn.execute(
            "SELECT * FROM usage_log WHERE subscription_id = ? AND used_at = ?",
            (subscription_id, _iso(day)),
        ).fetchone()

    @staticmethod
    def _reject_duplicate_name(
        conn: sqlite3.Connection,
        user_id: str,
        name: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        query = "SELECT 1 FROM subscription WHERE user_id = ? AND name = ? AND active = 1"
        params: List = [user_id, name]
        if exclude_id is not None:
            query += " AND id != ?"
            params.append(exclude_id)
        if conn.execute(query, params).fetchone() is not None:
            raise InvalidInputError(f"Subscription name already registered: {name}")


_repositories: Dict[str, TrackerRepository] = {}


def get_repository(db_path: str = DEFAULT_DB_PATH) -> TrackerRepository:
    """Get a repository instance.

    One instance is kept per database path.

    Args:
        db_path: Path to SQLite database file

    Returns:
        An instance of TrackerRepository
    """
    if db_path not in _repositories:
        _repositories[db_path] = TrackerRepository(db_path)
    return _repositories[db_path]
