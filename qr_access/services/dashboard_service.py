# =======================================================================================
# qr_access/services/dashboard_service.py - Analytics Aggregator
# =======================================================================================
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import case, func, or_, select
from sqlalchemy.engine import Connection

from ..models.enums import ScanKind
from ..models.schemas import DailyStat, IdentityList, IdentityStats, Rollup, Summary
from ..models.tables import identities, scan_events
from ..utils.validators import InputValidator
from .subscription import subscription_status


class DashboardService:
    """Read-only rollups over identities and the scan log for the dashboard."""

    # ---------- helper mapping ----------

    @staticmethod
    def as_date(value: Any) -> date:
        """DATE() comes back as a string on SQLite and as a date elsewhere."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return date.fromisoformat(str(value)[:10])

    # ---------- rollup ----------

    def rollup(self, conn: Connection, start_date: date, end_date: date) -> Rollup:
        """
        Totals for events whose date lies in [start_date, end_date], plus a
        per-day breakdown. Everything comes from one grouped statement, so the
        totals and the breakdown read the same snapshot and take no locks.
        """
        InputValidator.validate_window(start_date, end_date)

        lower = datetime.combine(start_date, time.min)
        upper = datetime.combine(end_date + timedelta(days=1), time.min)
        day_expr = func.date(scan_events.c.occurred_at)

        rows = conn.execute(
            select(
                day_expr.label("day"),
                scan_events.c.scan_kind,
                scan_events.c.identity_id,
                func.count().label("scans"),
            )
            .where(scan_events.c.occurred_at >= lower, scan_events.c.occurred_at < upper)
            .group_by(day_expr, scan_events.c.scan_kind, scan_events.c.identity_id)
        ).mappings().all()

        totals = {"total": 0, ScanKind.ENTRY.value: 0, ScanKind.EXIT.value: 0}
        everyone: Set[str] = set()
        per_day: Dict[date, Dict[str, Any]] = defaultdict(
            lambda: {"total": 0, ScanKind.ENTRY.value: 0, ScanKind.EXIT.value: 0, "ids": set()}
        )

        for row in rows:
            scans = int(row["scans"])
            kind = row["scan_kind"]
            bucket = per_day[self.as_date(row["day"])]

            totals["total"] += scans
            bucket["total"] += scans
            if kind in totals:
                totals[kind] += scans
                bucket[kind] += scans
            if row["identity_id"] is not None:
                everyone.add(row["identity_id"])
                bucket["ids"].add(row["identity_id"])

        daily = [
            DailyStat(
                day=day,
                total_scans=bucket["total"],
                unique_identities=len(bucket["ids"]),
                entry_scans=bucket[ScanKind.ENTRY.value],
                exit_scans=bucket[ScanKind.EXIT.value],
            )
            for day, bucket in sorted(per_day.items())
        ]

        return Rollup(
            start_date=start_date,
            end_date=end_date,
            total_scans=totals["total"],
            unique_identities=len(everyone),
            entry_scans=totals[ScanKind.ENTRY.value],
            exit_scans=totals[ScanKind.EXIT.value],
            daily=daily,
        )

    # ---------- summary ----------

    def get_summary(self, conn: Connection, today: date) -> Summary:
        row = conn.execute(
            select(
                func.count().label("total"),
                func.sum(case((identities.c.valid_until.is_(None), 1), else_=0)).label("inactive"),
                func.sum(case((identities.c.valid_until < today, 1), else_=0)).label("expired"),
            ).select_from(identities)
        ).mappings().first()

        total = int(row["total"] or 0) if row else 0
        inactive = int(row["inactive"] or 0) if row else 0
        expired = int(row["expired"] or 0) if row else 0
        return Summary(
            total_identities=total,
            active=total - inactive - expired,
            expired=expired,
            inactive=inactive,
        )

    # ---------- identities ----------

    def list_identities(self, conn: Connection, today: date, limit: int = 50, offset: int = 0,
                        search: Optional[str] = None) -> IdentityList:
        """Identities with their scan counters, newest first. `search` matches name or id."""
        condition = None
        if search:
            like = f"%{search.strip()}%"
            condition = or_(identities.c.display_name.ilike(like), identities.c.id.ilike(like))

        count_query = select(func.count()).select_from(identities)
        if condition is not None:
            count_query = count_query.where(condition)
        total_count = conn.execute(count_query).scalar_one()

        query = (
            select(
                identities.c.id,
                identities.c.display_name,
                identities.c.valid_until,
                identities.c.created_at,
                func.count(scan_events.c.id).label("total_scans"),
                func.sum(case((scan_events.c.scan_kind == ScanKind.ENTRY.value, 1), else_=0)).label("entry_scans"),
                func.sum(case((scan_events.c.scan_kind == ScanKind.EXIT.value, 1), else_=0)).label("exit_scans"),
            )
            .select_from(identities.outerjoin(scan_events, scan_events.c.identity_id == identities.c.id))
            .group_by(
                identities.c.id,
                identities.c.display_name,
                identities.c.valid_until,
                identities.c.created_at,
            )
            .order_by(identities.c.created_at.desc(), identities.c.id)
            .limit(limit)
            .offset(offset)
        )
        if condition is not None:
            query = query.where(condition)

        items: List[IdentityStats] = []
        for row in conn.execute(query).mappings().all():
            items.append(
                IdentityStats(
                    id=row["id"],
                    display_name=row["display_name"],
                    valid_until=row["valid_until"],
                    subscription_status=subscription_status(row["valid_until"], today),
                    total_scans=int(row["total_scans"] or 0),
                    entry_scans=int(row["entry_scans"] or 0),
                    exit_scans=int(row["exit_scans"] or 0),
                    created_at=row["created_at"],
                )
            )

        return IdentityList(
            identities=items,
            total_count=total_count,
            has_more=offset + limit < total_count,
        )
