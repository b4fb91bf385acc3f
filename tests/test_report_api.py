"""Report API tests through the ASGI app."""

from uuid import UUID, uuid4

from collector.db.models import Entry, EntryStatus, Report, ReportStatus, Run, RunStatus


class TestCreateReport:
    """POST /api/v1/report"""

    async def test_create(self, client, seed):
        t = await seed.type()
        run = await seed.run(t.id, status=RunStatus.RUNNING)
        e1, e2 = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSING, run_id=run.id)

        resp = await client.post(
            "/api/v1/report",
            json={
                "summary": "weekly",
                "markdown_content": "# Weekly",
                "entry_ids": [str(e1.id), str(e2.id)],
                "run_id": str(run.id),
            },
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        report = await seed.get(Report, UUID(data["report_id"]))
        assert report.entry_ids == [str(e1.id), str(e2.id)]
        assert report.status == ReportStatus.PROCESSED
        assert (await seed.get(Entry, e1.id)).status == EntryStatus.PROCESSED

    async def test_create_without_entries(self, client):
        resp = await client.post("/api/v1/report", json={"summary": "s", "markdown_content": "m"})

        assert resp.status_code == 400
        assert "entry_ids" in resp.json()["error"]


class TestReadReports:
    """GET /api/v1/report, GET /api/v1/report/{id}"""

    async def test_list_and_filter(self, client, seed):
        t = await seed.type()
        run = await seed.run(t.id, name="batch-7")
        (entry,) = await seed.entries(t.id, count=1)
        processed = await seed.report([entry.id], run_id=run.id)
        done = await seed.report([entry.id], status=ReportStatus.DONE)

        all_reports = (await client.get("/api/v1/report")).json()
        assert [r["id"] for r in all_reports] == [str(done.id), str(processed.id)]
        assert all_reports[1]["processing_runs"] == {"name": "batch-7"}

        only_done = (await client.get("/api/v1/report", params={"status": "done"})).json()
        assert [r["id"] for r in only_done] == [str(done.id)]

    async def test_get_with_entries(self, client, seed):
        t = await seed.type()
        entries = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSED)
        report = await seed.report([e.id for e in entries])

        resp = await client.get(f"/api/v1/report/{report.id}")

        assert resp.status_code == 200
        data = resp.json()
        assert data["markdown_content"] == "# Report"
        assert [e["id"] for e in data["entries"]] == [str(e.id) for e in entries]

    async def test_get_missing(self, client):
        resp = await client.get(f"/api/v1/report/{uuid4()}")

        assert resp.status_code == 404


class TestFinalize:
    """POST /api/v1/report/{id}/done, DELETE /api/v1/report/{id}"""

    async def test_done_archives_entries(self, client, seed):
        t = await seed.type()
        entries = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSED)
        report = await seed.report([e.id for e in entries])

        resp = await client.post(f"/api/v1/report/{report.id}/done")

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert (await seed.get(Report, report.id)).status == ReportStatus.DONE
        for e in entries:
            assert (await seed.get(Entry, e.id)).status == EntryStatus.ARCHIVED

    async def test_done_missing_report(self, client):
        resp = await client.post(f"/api/v1/report/{uuid4()}/done")

        assert resp.status_code == 404

    async def test_done_invalidates_cached_list(self, client, seed):
        t = await seed.type()
        (entry,) = await seed.entries(t.id, count=1, status=EntryStatus.PROCESSED)
        report = await seed.report([entry.id])
        assert (await client.get("/api/v1/report")).json()[0]["status"] == "processed"

        await client.post(f"/api/v1/report/{report.id}/done")

        assert (await client.get("/api/v1/report")).json()[0]["status"] == "done"

    async def test_delete_cascades(self, client, seed):
        t = await seed.type()
        run = await seed.run(t.id, status=RunStatus.COMPLETED)
        entries = await seed.entries(t.id, count=2, status=EntryStatus.PROCESSED, run_id=run.id)
        report = await seed.report([e.id for e in entries], run_id=run.id)

        resp = await client.delete(f"/api/v1/report/{report.id}")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "run_deleted": True}
        assert await seed.get(Report, report.id) is None
        assert await seed.get(Run, run.id) is None
        assert await seed.get(Entry, entries[0].id) is None
