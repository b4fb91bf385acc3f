"""ReportFinalizer tests - create, done, delete."""

from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from collector.db.models import Entry, EntryStatus, Report, ReportStatus, Run, RunStatus
from collector.db.repositories.runs import RunRepository
from collector.exceptions import NotFoundError, ValidationError
from collector.services.report_finalizer import ReportFinalizer


class TestCreateReport:
    """create_report()"""

    async def test_marks_entries_processed(self, session, seed):
        t = await seed.type()
        run = await seed.run(t.id, status=RunStatus.RUNNING)
        e1, e2, e3 = await seed.entries(t.id, count=3, status=EntryStatus.PROCESSING, run_id=run.id)

        report = await ReportFinalizer(session).create_report(
            summary="Two papers",
            markdown_content="# Papers",
            entry_ids=[e1.id, e2.id],
            run_id=run.id,
            sources={"arxiv": "https://arxiv.org/abs/1"},
        )

        stored = await seed.get(Report, report.id)
        assert stored.status == ReportStatus.PROCESSED
        assert stored.entry_ids == [str(e1.id), str(e2.id)]
        assert stored.run_id == run.id
        assert stored.sources == {"arxiv": "https://arxiv.org/abs/1"}
        assert (await seed.get(Entry, e1.id)).status == EntryStatus.PROCESSED
        assert (await seed.get(Entry, e2.id)).status == EntryStatus.PROCESSED
        assert (await seed.get(Entry, e3.id)).status == EntryStatus.PROCESSING

    async def test_duplicate_entry_ids_stored_once(self, session, seed, caplog):
        t = await seed.type()
        e1, e2 = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSING)

        report = await ReportFinalizer(session).create_report(
            "s", "m", [e1.id, e2.id, e1.id, str(e2.id)]
        )

        stored = await seed.get(Report, report.id)
        assert stored.entry_ids == [str(e1.id), str(e2.id)]
        assert "missing entries" not in caplog.text

    async def test_requires_entries(self, session):
        with pytest.raises(ValidationError, match="entry_ids"):
            await ReportFinalizer(session).create_report("s", "m", [])

    async def test_unknown_run(self, session, seed):
        t = await seed.type()
        (entry,) = await seed.entries(t.id, count=1)

        with pytest.raises(ValidationError, match="Unknown run_id"):
            await ReportFinalizer(session).create_report("s", "m", [entry.id], run_id=uuid4())

        assert (await seed.get(Entry, entry.id)).status == EntryStatus.PENDING


class TestMarkDone:
    """mark_done()"""

    async def test_archives_entries(self, session, seed):
        t = await seed.type()
        entries = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSED)
        report = await seed.report([e.id for e in entries])

        await ReportFinalizer(session).mark_done(report.id)

        assert (await seed.get(Report, report.id)).status == ReportStatus.DONE
        for e in entries:
            assert (await seed.get(Entry, e.id)).status == EntryStatus.ARCHIVED

    async def test_missing_report(self, session):
        with pytest.raises(NotFoundError):
            await ReportFinalizer(session).mark_done(uuid4())


class TestDeleteReport:
    """delete_report()"""

    async def test_deletes_entries_report_and_run(self, session, seed):
        t = await seed.type()
        run = await seed.run(t.id, status=RunStatus.COMPLETED)
        entries = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSED, run_id=run.id)
        (bystander,) = await seed.entries(t.id, count=1)
        report = await seed.report([e.id for e in entries], run_id=run.id)

        run_deleted = await ReportFinalizer(session).delete_report(report.id)

        assert run_deleted is True
        assert await seed.get(Report, report.id) is None
        assert await seed.get(Run, run.id) is None
        for e in entries:
            assert await seed.get(Entry, e.id) is None
        assert await seed.get(Entry, bystander.id) is not None

    async def test_run_failure_keeps_other_deletions(self, session, seed, monkeypatch):
        t = await seed.type()
        run = await seed.run(t.id, status=RunStatus.COMPLETED)
        entries = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSED, run_id=run.id)
        report = await seed.report([e.id for e in entries], run_id=run.id)

        async def failing_delete(self, id):
            raise OperationalError("DELETE FROM processing_runs", {}, Exception("database is locked"))

        monkeypatch.setattr(RunRepository, "delete", failing_delete)

        run_deleted = await ReportFinalizer(session).delete_report(report.id)

        assert run_deleted is False
        assert await seed.get(Report, report.id) is None
        for e in entries:
            assert await seed.get(Entry, e.id) is None
        assert await seed.get(Run, run.id) is not None

    async def test_report_without_run(self, session, seed):
        t = await seed.type()
        entries = await seed.entries(t.id, count=1, status=EntryStatus.PROCESSED)
        report = await seed.report([e.id for e in entries])

        assert await ReportFinalizer(session).delete_report(report.id) is False
        assert await seed.get(Report, report.id) is None


class TestReadReports:
    """list_reports() / get_report()"""

    async def test_list_filters_by_status(self, session, seed):
        t = await seed.type()
        (entry,) = await seed.entries(t.id, count=1)
        processed = await seed.report([entry.id])
        done = await seed.report([entry.id], status=ReportStatus.DONE)
        finalizer = ReportFinalizer(session)

        assert [r.id for r in await finalizer.list_reports()] == [done.id, processed.id]
        assert [r.id for r in await finalizer.list_reports(ReportStatus.DONE)] == [done.id]

    async def test_list_invalid_status(self, session):
        with pytest.raises(ValidationError):
            await ReportFinalizer(session).list_reports("archived")

    async def test_get_report_with_entries(self, session, seed):
        t = await seed.type()
        entries = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSED)
        report = await seed.report([e.id for e in reversed(entries)])

        found, found_entries = await ReportFinalizer(session).get_report(report.id)

        assert found.id == report.id
        assert [e.id for e in found_entries] == [e.id for e in entries]
