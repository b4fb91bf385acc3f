"""Plain-text pending list tests."""

from uuid import uuid4

from collector.db.models import EntryStatus
from collector.list_api import format_pending_list


class TestPendingList:
    """GET /api/v1/list/{type}"""

    async def test_numbered_text_list(self, client, seed):
        t = await seed.type()
        entries = await seed.entries(t.id, count=2)

        resp = await client.get(f"/api/v1/list/{t.id}")

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "text/plain; charset=utf-8"
        lines = resp.text.split("\n")
        assert lines[0] == f"1. ID: {entries[0].id}"
        assert lines[1] == f"   Content: {entries[0].content}"
        assert lines[2].startswith("   Date: 2026-01-01")
        assert lines[3] == ""
        assert lines[4] == f"2. ID: {entries[1].id}"

    async def test_default_limit_is_five(self, client, seed):
        t = await seed.type()
        await seed.entries(t.id, count=7)

        resp = await client.get(f"/api/v1/list/{t.id}")

        assert resp.text.count(". ID: ") == 5

    async def test_limit_and_status_filter(self, client, seed):
        t = await seed.type()
        await seed.entries(t.id, count=1, status=EntryStatus.PROCESSED)
        pending = await seed.entries(t.id, count=3)

        resp = await client.get(f"/api/v1/list/{t.id}", params={"limit": 1})

        assert resp.text.count(". ID: ") == 1
        assert str(pending[0].id) in resp.text

    async def test_unknown_type_is_empty(self, client):
        resp = await client.get(f"/api/v1/list/{uuid4()}")

        assert resp.status_code == 200
        assert resp.text == ""

    def test_format_empty(self):
        assert format_pending_list([]) == ""
