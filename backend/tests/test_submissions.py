"""每日提交测试：同一成员同一天只保留一条提交"""
import asyncio
from datetime import date

import pytest
from sqlalchemy import select

from checkin.models import Member, Response, ResponseValue
from checkin.services.submissions import encode_value, submit_response
from conftest import field_ids


def submit(client, form, member="Kim", **values_by_label):
    ids = field_ids(form)
    values = {ids[label]: value for label, value in values_by_label.items()}
    return client.post("/api/responses", json={"formId": form["short_id"], "memberName": member, "values": values})


def full_values(chapters=3, mood="good", outreach=None, prayed=True):
    return {
        "Bible chapters": chapters,
        "Mood": mood,
        "Outreach": outreach if outreach is not None else {"Try": 1, "Share": 0, "Accept": 0},
        "Prayed": prayed,
    }


class TestEncodeValue:

    def test_plain_values(self):
        assert encode_value("hello") == "hello"
        assert encode_value(3) == "3"
        assert encode_value(2.5) == "2.5"
        assert encode_value(4.0) == "4"
        assert encode_value(None) == ""

    def test_checkbox(self):
        assert encode_value(True) == "true"
        assert encode_value(False) == "false"

    def test_steps_map(self):
        assert encode_value({"A": 1, "B": 0}) == '{"A":1,"B":0}'


class TestUpsertByDay:

    def test_first_submission_creates_response(self, client, make_form, count_rows, set_today):
        form = make_form()
        res = submit(client, form, **full_values())
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["responseId"]
        assert count_rows(Member) == 1
        assert count_rows(Response) == 1
        assert count_rows(ResponseValue) == 4

    def test_resubmission_same_day_replaces_values(self, client, make_form, count_rows, set_today):
        form = make_form()
        first = submit(client, form, **full_values(chapters=3)).json()
        second = submit(client, form, **full_values(chapters=7, mood="bad", prayed=False)).json()

        assert first["responseId"] == second["responseId"]
        assert count_rows(Response) == 1
        assert count_rows(ResponseValue) == 4

        ids = field_ids(form)
        results = client.get(f"/api/forms/{form['id']}/responses").json()
        assert len(results["responses"]) == 1
        values = results["responses"][0]["values"]
        assert values[ids["Bible chapters"]] == "7"
        assert values[ids["Mood"]] == "bad"
        assert values[ids["Prayed"]] == "false"

    def test_resubmission_with_fewer_values_drops_old_ones(self, client, make_form, count_rows, set_today):
        form = make_form()
        submit(client, form, Note="first", **full_values())
        assert count_rows(ResponseValue) == 5
        submit(client, form, **full_values())
        assert count_rows(ResponseValue) == 4

    def test_next_day_creates_new_response(self, client, make_form, count_rows, set_today):
        form = make_form()
        submit(client, form, **full_values())
        set_today(date(2024, 3, 5))
        submit(client, form, **full_values())
        assert count_rows(Response) == 2
        assert count_rows(Member) == 1

        grouped = client.get(f"/api/forms/{form['id']}/responses").json()["groupedByDate"]
        assert list(grouped) == ["2024-03-05", "2024-03-04"]

    def test_member_names_match_exactly(self, client, make_form, count_rows, set_today):
        form = make_form()
        submit(client, form, member="Kim", **full_values())
        submit(client, form, member="Kim ", **full_values())
        submit(client, form, member="kim", **full_values())
        assert count_rows(Member) == 3
        assert count_rows(Response) == 3

    def test_same_name_on_different_forms(self, client, make_form, count_rows, set_today):
        submit(client, make_form(name="A"), **full_values())
        submit(client, make_form(name="B"), **full_values())
        assert count_rows(Member) == 2

    def test_form_reference_by_uuid(self, client, make_form, count_rows, set_today):
        form = make_form()
        ids = field_ids(form)
        res = client.post("/api/responses", json={
            "formId": form["id"],
            "memberName": "Lee",
            "values": {ids[label]: value for label, value in full_values().items()},
        })
        assert res.status_code == 200
        assert count_rows(Response) == 1

    def test_stored_encodings(self, client, make_form, set_today):
        form = make_form()
        ids = field_ids(form)
        submit(client, form, **full_values(outreach={"Try": 2, "Share": 1, "Accept": 0}, prayed=True))
        values = client.get(f"/api/forms/{form['id']}/responses").json()["responses"][0]["values"]
        assert values[ids["Outreach"]] == '{"Try":2,"Share":1,"Accept":0}'
        assert values[ids["Prayed"]] == "true"
        assert values[ids["Bible chapters"]] == "3"


class TestValidation:

    def test_unknown_form_is_404(self, client):
        res = client.post("/api/responses", json={"formId": "nope00", "memberName": "Kim", "values": {}})
        assert res.status_code == 404
        assert res.json() == {"error": "Form not found"}

    def test_blank_member_name(self, client, make_form, count_rows):
        form = make_form()
        res = submit(client, form, member="   ", **full_values())
        assert res.status_code == 400
        assert res.json() == {"error": "Member name is required"}
        assert count_rows(Member) == 0

    def test_missing_required_field(self, client, make_form, count_rows):
        form = make_form()
        values = full_values()
        del values["Mood"]
        res = submit(client, form, **values)
        assert res.status_code == 400
        assert res.json() == {"error": "Mood is required"}
        assert count_rows(Response) == 0

    def test_blank_required_text(self, client, make_form):
        form = make_form(fields=[{"label": "Reflection", "type": "text"}])
        res = submit(client, form, Reflection="  ")
        assert res.status_code == 400

    def test_unchecked_checkbox_counts_as_answered(self, client, make_form, set_today):
        form = make_form(fields=[{"label": "Prayed", "type": "checkbox"}])
        assert submit(client, form, Prayed=False).status_code == 200

    def test_image_field_never_required(self, client, make_form, count_rows, set_today):
        form = make_form(fields=[{"label": "Banner", "type": "image", "options": ["https://x/y.png"]}])
        res = submit(client, form, Banner="ignored")
        assert res.status_code == 200
        assert count_rows(ResponseValue) == 0

    def test_unknown_field_ids_dropped(self, client, make_form, count_rows, set_today):
        form = make_form(fields=[{"label": "Count", "type": "number"}])
        ids = field_ids(form)
        res = client.post("/api/responses", json={
            "formId": form["short_id"],
            "memberName": "Kim",
            "values": {ids["Count"]: 1, "00000000-0000-0000-0000-000000000000": "x"},
        })
        assert res.status_code == 200
        assert count_rows(ResponseValue) == 1

    def test_missing_member_name_key(self, client, make_form):
        form = make_form()
        res = client.post("/api/responses", json={"formId": form["short_id"], "values": {}})
        assert res.status_code == 400
        assert res.json()["error"] == "Validation failed"


class TestServiceLevel:
    """直接调用 submit_response，绕过 HTTP 层"""

    @pytest.fixture()
    def form(self, make_form):
        return make_form(fields=[{"label": "Count", "type": "number"}])

    def test_sequential_calls_keep_one_row(self, session_factory, form, set_today):
        field_id = form["fields"][0]["id"]

        async def scenario():
            async with session_factory() as db:
                first = await submit_response(db, form["short_id"], "Park", {field_id: 1})
            async with session_factory() as db:
                second = await submit_response(db, form["id"], "Park", {field_id: 2})
            async with session_factory() as db:
                rows = (await db.execute(select(Response))).scalars().all()
                values = (await db.execute(select(ResponseValue.value))).scalars().all()
            return first, second, rows, values

        first, second, rows, values = asyncio.run(scenario())
        assert first == second
        assert len(rows) == 1
        assert rows[0].date == date(2024, 3, 4)
        assert values == ["2"]

    def test_concurrent_calls_keep_one_row(self, session_factory, form, set_today, count_rows):
        field_id = form["fields"][0]["id"]

        async def submit(count):
            async with session_factory() as db:
                return await submit_response(db, form["short_id"], "Park", {field_id: count})

        async def scenario():
            return await asyncio.gather(*(submit(i) for i in range(5)))

        ids = asyncio.run(scenario())
        assert len(set(ids)) == 1
        assert count_rows(Response) == 1
        assert count_rows(Member) == 1
        assert count_rows(ResponseValue) == 1
