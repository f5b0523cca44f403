"""
Tests for the analytics engine — registry, snapshot loading, and
per-report failure isolation.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from analytics import engine, snapshot
from analytics.engine import REPORTS, evaluate, get_report, run_all_reports, run_report
from analytics.reports import AnalyticsOptions, CompletionTime, HighValueReport, WorkloadStatus
from analytics.snapshot import (
    PAYMENTS,
    DomainSnapshot,
    JobRecord,
    PaymentRecord,
    load_snapshot,
)

AS_OF = date(2024, 12, 20)


class _StubSession:
    """Stands in for AsyncSession when every loader is patched."""

    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1


class _DeadConnectionSession(_StubSession):
    """Session whose connection is gone: rollback fails like the fetch did."""

    async def rollback(self):
        self.rollbacks += 1
        raise ConnectionRefusedError(111, "Connect call failed")


def _database_unreachable(monkeypatch):
    """Patch every loader to fail the way asyncpg does when Postgres is down."""

    async def _refused(db):
        raise ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 5432)")

    for table in snapshot.ALL_TABLES:
        monkeypatch.setitem(snapshot._TABLE_LOADERS, table, _refused)


def _payments_down(monkeypatch):
    """Patch loaders so the payments table fails and everything else loads empty."""

    async def _empty(db):
        return ()

    async def _broken(db):
        raise OperationalError("SELECT * FROM payments", {}, Exception("no such table: payments"))

    for table in snapshot.ALL_TABLES:
        monkeypatch.setitem(snapshot._TABLE_LOADERS, table, _broken if table == PAYMENTS else _empty)


@pytest.fixture
def options():
    return AnalyticsOptions(today=AS_OF)


class TestRegistry:
    def test_all_reports_registered(self):
        assert set(REPORTS) == {
            "payment-alerts",
            "monthly-income",
            "yearly-income",
            "client-reliability",
            "completion-time",
            "service-demand",
            "service-revenue",
            "high-value-projects",
            "review-sentiment",
            "workload-status",
            "dashboard-stats",
            "top-clients",
        }

    def test_declared_tables_are_loadable(self):
        for definition in REPORTS.values():
            assert set(definition.tables) <= set(snapshot.ALL_TABLES), definition.name

    def test_unknown_report(self):
        with pytest.raises(KeyError):
            get_report("profit-forecast")


class TestSnapshotLoading:
    async def test_failed_table_is_marked_unavailable(self, monkeypatch):
        _payments_down(monkeypatch)
        db = _StubSession()

        loaded = await load_snapshot(db)

        assert loaded.unavailable == frozenset({PAYMENTS})
        assert loaded.payments == ()
        assert db.rollbacks == 1

    async def test_unreachable_database_marks_every_table_unavailable(self, monkeypatch):
        _database_unreachable(monkeypatch)
        db = _DeadConnectionSession()

        loaded = await load_snapshot(db)

        assert loaded.unavailable == frozenset(snapshot.ALL_TABLES)
        assert db.rollbacks == len(snapshot.ALL_TABLES)

    async def test_unknown_table_rejected(self):
        with pytest.raises(ValueError, match="Unknown snapshot table"):
            await load_snapshot(_StubSession(), ["invoices"])

    async def test_loads_only_requested_tables(self, seeded_db):
        loaded = await load_snapshot(seeded_db["session"], [snapshot.SERVICES])

        assert len(loaded.services) == 8
        assert loaded.jobs == ()
        assert loaded.unavailable == frozenset()


class TestFailureIsolation:
    async def test_payment_outage_degrades_only_payment_reports(self, monkeypatch, options):
        _payments_down(monkeypatch)

        results = await run_all_reports(_StubSession(), options)

        degraded = {name for name, result in results.items() if result.degraded}
        assert degraded == {
            name for name, definition in REPORTS.items() if PAYMENTS in definition.tables
        }
        assert "service-demand" not in degraded
        assert "high-value-projects" not in degraded
        assert "top-clients" not in degraded

    async def test_degraded_reports_return_defaults(self, monkeypatch, options):
        _payments_down(monkeypatch)

        results = await run_all_reports(_StubSession(), options)

        assert results["payment-alerts"].data == []
        assert results["monthly-income"].data == []
        assert results["workload-status"].data == WorkloadStatus()
        assert results["completion-time"].data == CompletionTime(avg_days=14, sample_size=0, is_fallback=True)
        assert "payments" in results["payment-alerts"].error

    async def test_unreachable_database_degrades_every_report(self, monkeypatch, options):
        _database_unreachable(monkeypatch)

        results = await run_all_reports(_DeadConnectionSession(), options)

        assert all(result.degraded for result in results.values())
        assert results["workload-status"].data == WorkloadStatus()
        assert results["top-clients"].data == []

    async def test_unreachable_database_single_report(self, monkeypatch, options):
        _database_unreachable(monkeypatch)

        result = await run_report(_DeadConnectionSession(), "workload-status", options)

        assert result.degraded is True
        assert result.data == WorkloadStatus()

    async def test_single_report_degrades(self, monkeypatch, options):
        _payments_down(monkeypatch)

        result = await run_report(_StubSession(), "monthly-income", options)

        assert result.degraded is True
        assert result.data == []

    def test_computation_error_degrades_report(self, options):
        def _explode(snap, opts):
            raise ZeroDivisionError("division by zero")

        definition = get_report("high-value-projects")
        broken = engine.ReportDefinition(
            name=definition.name,
            feature=definition.feature,
            description=definition.description,
            compute=_explode,
            tables=definition.tables,
            default=definition.default,
        )

        result = evaluate(broken, DomainSnapshot(), options)

        assert result.degraded is True
        assert result.error == "division by zero"
        assert result.data == HighValueReport(average_amount=Decimal("0"), projects=[])

    def test_healthy_report_not_degraded(self, options):
        snap = DomainSnapshot(
            jobs=(JobRecord(1, "Site", "completed", Decimal("500"), datetime(2024, 1, 1)),),
            payments=(PaymentRecord(1, date(2024, 2, 1), date(2024, 1, 31), "paid", Decimal("500"), "online"),),
            involves=((1, 1),),
        )

        result = evaluate(get_report("completion-time"), snap, options)

        assert result.degraded is False
        assert result.error is None
        assert result.data.avg_days == 30


class TestSeededRefresh:
    async def test_full_refresh_over_demo_data(self, seeded_db, options):
        results = await run_all_reports(seeded_db["session"], options)

        assert not any(result.degraded for result in results.values())
        assert results["completion-time"].data.avg_days == 35
        assert results["dashboard-stats"].data.total_revenue == Decimal("25500")
        assert [c.name for c in results["top-clients"].data] == ["Startup Inc", "Big Enterprise", "John Doe"]

    async def test_refresh_is_repeatable(self, seeded_db, options):
        first = await run_all_reports(seeded_db["session"], options)
        second = await run_all_reports(seeded_db["session"], options)

        assert {k: v.data for k, v in first.items()} == {k: v.data for k, v in second.items()}


class TestSnapshotIndices:
    def test_duplicate_pairs_collapse_in_first_seen_order(self):
        snap = DomainSnapshot(
            involves=((1, 3), (1, 2), (1, 3), (2, 5), (1, 2)),
            requires=((1, 7), (2, 7), (1, 7)),
        )

        assert snap.payment_ids_by_job == {1: [3, 2], 2: [5]}
        assert snap.job_ids_by_service == {7: [1, 2]}

    def test_large_association_index(self):
        pairs = tuple((job_id % 50, job_id) for job_id in range(20_000))
        snap = DomainSnapshot(involves=pairs + pairs)

        assert len(snap.payment_ids_by_job) == 50
        assert all(len(payment_ids) == 400 for payment_ids in snap.payment_ids_by_job.values())
