import io

import openpyxl

from conftest import ADMIN, ASSISTANT, COORDINATOR, DOCTOR
from store_sync import StoreSync

CELL = {"location_id": "porto-feliz", "shift_id": "pf-diurno", "date_key": "2026-02-10"}


def _create_month(client, month_key="2026-02"):
    resp = client.post("/api/months/", json={"month_key": month_key}, headers=ADMIN)
    assert resp.status_code == 200
    return resp.json()


def _doctor_id(client, name):
    doctors = client.get("/api/doctors/", headers=ADMIN).json()
    return next(d["id"] for d in doctors if d["name"] == name)


def _week_cell(client, shift_id="pf-diurno", date_key="2026-02-10", week=2, headers=ADMIN):
    locations = client.get(f"/api/months/2026-02/weeks/{week}", headers=headers).json()["locations"]
    loc = next(l for l in locations if l["id"] == "porto-feliz")
    shift = next(s for s in loc["shifts"] if s["id"] == shift_id)
    day = next(d for d in shift["schedule"] if d["date_key"] == date_key)
    return [a["name"] for a in day["assignments"]]


def test_root(client):
    assert client.get("/").json()["docs"] == "/docs"


def test_user_header_is_required(client):
    assert client.get("/api/doctors/").status_code == 401
    assert client.get("/api/doctors/", headers={"X-User": "ninguem"}).status_code == 401
    me = client.get("/api/users/me", headers=DOCTOR).json()
    assert me["role"] == "Medico"
    assert me["name"] == "Thiago Dalleprane"


def test_roles_are_enforced(client):
    assert client.post("/api/doctors/", json={"name": "X"}, headers=COORDINATOR).status_code == 403
    assert client.get("/api/rules/", headers=ASSISTANT).status_code == 403
    assert client.get("/api/history/", headers=COORDINATOR).status_code == 403
    assert client.get("/api/template/", headers=DOCTOR).status_code == 403
    assert client.post("/api/months/", json={"month_key": "2026-03"}, headers=COORDINATOR).status_code == 200
    assert client.post("/api/months/", json={"month_key": "2026-03"}, headers=DOCTOR).status_code == 403


def test_months(client):
    _create_month(client)
    assert [m["month_key"] for m in client.get("/api/months/", headers=ADMIN).json()] == ["2026-01", "2026-02"]

    month = client.get("/api/months/2026-02", headers=ADMIN).json()
    assert month["exists"]
    assert (month["previous"], month["next"]) == ("2026-01", "2026-03")
    assert len(month["weeks"]) == 5
    assert month["weeks"][0]["days"][0]["date_key"] == "2026-01-26"

    assert _week_cell(client, date_key="2026-02-02", week=1) == ["Marcos André"]
    assert client.get("/api/months/2026-02/weeks/9", headers=ADMIN).status_code == 404
    assert client.post("/api/months/", json={"month_key": "2026-13"}, headers=ADMIN).status_code == 400

    assert client.delete("/api/months/2026-02", headers=ADMIN).status_code == 200
    assert client.delete("/api/months/2026-02", headers=ADMIN).status_code == 404


def test_apply_template(client):
    _create_month(client)
    client.request("DELETE", "/api/assignments/", json={**CELL, "index": 0}, headers=ADMIN)
    assert _week_cell(client) == []

    resp = client.post("/api/months/apply-template", json={"month_keys": ["2026-02"]}, headers=ADMIN)
    assert resp.status_code == 200
    assert _week_cell(client) == ["Ricardo Cristóvão"]

    assert client.post("/api/months/apply-template", json={"month_keys": []}, headers=ADMIN).status_code == 400
    resp = client.post("/api/months/apply-template", json={"month_keys": ["2026-02"], "mode": "merge"}, headers=ADMIN)
    assert resp.status_code == 400


def test_doctor_sees_only_own_assignments(client):
    _create_month(client)
    locations = client.get("/api/months/2026-02/weeks/1", headers=DOCTOR).json()["locations"]
    names = {a["name"] for l in locations for s in l["shifts"] for d in s["schedule"] for a in d["assignments"]}
    assert names == {"Thiago Dalleprane"}


def test_save_edit_delete_and_revert(client):
    _create_month(client)
    client.put("/api/notifications/settings", json={"admin_emails": ["adm@example.com"]}, headers=ADMIN)

    resp = client.post("/api/assignments/", json={**CELL, "assignment": {"name": "Pedro Maich"}}, headers=ADMIN)
    assert resp.status_code == 200
    saved = resp.json()["assignment"]
    assert saved["value"] == 1900
    assert saved["period"] == "Diurno"
    assert [a["name"] for a in resp.json()["cell"]] == ["Ricardo Cristóvão", "Pedro Maich"]

    resp = client.post(
        "/api/assignments/",
        json={**CELL, "index": 1, "assignment": {"name": "Pedro Maich", "is_flagged": True}},
        headers=ADMIN,
    )
    assert resp.json()["assignment"]["id"] == saved["id"]

    resp = client.request("DELETE", "/api/assignments/", json={**CELL, "index": 1}, headers=ADMIN)
    assert [a["name"] for a in resp.json()["cell"]] == ["Ricardo Cristóvão"]

    logs = client.get("/api/notifications/logs", headers=ADMIN).json()
    assert [log["type"] for log in logs] == ["schedule_delete", "schedule_flag", "schedule_create"]

    entries = client.get("/api/history/", headers=ADMIN).json()
    assert [e["action"] for e in entries] == ["delete", "edit", "create"]
    assert client.post(f"/api/history/{entries[0]['id']}/revert", headers=ADMIN).json()["reverted"] == "delete"
    assert _week_cell(client) == ["Ricardo Cristóvão", "Pedro Maich"]

    assert client.post("/api/history/history-missing/revert", headers=ADMIN).status_code == 404
    assert client.get("/api/history/?action=create", headers=ADMIN).json()[0]["action"] == "create"


def test_assistant_edits_but_cannot_create(client):
    _create_month(client)
    resp = client.post("/api/assignments/", json={**CELL, "assignment": {"name": "Pedro Maich"}}, headers=ASSISTANT)
    assert resp.status_code == 403
    resp = client.post(
        "/api/assignments/",
        json={**CELL, "index": 0, "assignment": {"name": "Outro", "note": "chega 8h"}},
        headers=ASSISTANT,
    )
    assert resp.status_code == 200
    assert resp.json()["assignment"]["name"] == "Ricardo Cristóvão"
    assert resp.json()["assignment"]["note"] == "chega 8h"


def test_cell_validation(client):
    bad = {**CELL, "day_index": 1, "assignment": {"name": "Pedro Maich"}}
    assert client.post("/api/assignments/", json=bad, headers=ADMIN).status_code == 400
    template_cell = {"location_id": "porto-feliz", "shift_id": "pf-diurno", "day_index": 7}
    assert client.post("/api/assignments/", json={**template_cell, "assignment": {"name": "X"}}, headers=ADMIN).status_code == 400
    unknown = {**CELL, "shift_id": "nope", "assignment": {"name": "X"}}
    assert client.post("/api/assignments/", json=unknown, headers=ADMIN).status_code == 404
    out_of_range = {**CELL, "index": 5}
    assert client.request("DELETE", "/api/assignments/", json=out_of_range, headers=ADMIN).status_code == 404


def test_template_edit_and_move(client):
    client.put("/api/notifications/settings", json={"admin_emails": ["adm@example.com"]}, headers=ADMIN)
    cell = {"location_id": "salto", "shift_id": "sa-tarde", "day_index": 0}
    resp = client.post("/api/assignments/", json={**cell, "assignment": {"name": "Thays Donaire"}}, headers=ADMIN)
    assert resp.status_code == 200

    target = {"location_id": "salto", "shift_id": "sa-tarde", "day_index": 1}
    resp = client.post("/api/assignments/move", json={"source": cell, "index": 0, "target": target}, headers=ADMIN)
    assert resp.json()["source"] == []
    assert [a["name"] for a in resp.json()["target"]] == ["Thays Donaire"]

    view = client.get("/api/template/", params={"doctor": "Thays Donaire"}, headers=ADMIN).json()
    salto = next(l for l in view if l["id"] == "salto")
    tarde = next(s for s in salto["shifts"] if s["id"] == "sa-tarde")
    assert [a["name"] for a in tarde["schedule"][1]["assignments"]] == ["Thays Donaire"]

    # template edits do not notify
    assert client.get("/api/notifications/logs", headers=ADMIN).json() == []

    month_target = {"location_id": "salto", "shift_id": "sa-tarde", "date_key": "2026-02-10"}
    resp = client.post("/api/assignments/move", json={"source": target, "index": 0, "target": month_target}, headers=ADMIN)
    assert resp.status_code == 400


def test_financial_report(client):
    _create_month(client)
    client.post("/api/assignments/", json={**CELL, "assignment": {"name": "Pedro Maich"}}, headers=ADMIN)

    report = client.get("/api/reports/financial/2026-02", headers=ADMIN).json()
    assert report["total"] == 1900
    assert report["rows"][0]["doctor_name"] == "Pedro Maich"
    assert report["by_hospital"] == [{"name": "Porto Feliz", "value": 1900}]

    assert client.get("/api/reports/financial/2026-02", headers=DOCTOR).json()["rows"] == []
    assert client.get("/api/reports/financial/fevereiro", headers=ADMIN).status_code == 400


def test_exports(client):
    _create_month(client)
    client.post("/api/assignments/", json={**CELL, "assignment": {"name": "Pedro Maich"}}, headers=ADMIN)

    resp = client.get("/api/export/financial/2026-02.csv", headers=ADMIN)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "relatorio_financeiro_2026-02.csv" in resp.headers["content-disposition"]
    lines = resp.content.decode("utf-8-sig").splitlines()
    assert lines[1].startswith("10/02/2026;Porto Feliz;07:00;19:00")

    resp = client.get("/api/export/financial/2026-02.xlsx", headers=COORDINATOR)
    assert openpyxl.load_workbook(io.BytesIO(resp.content))["Financeiro"].cell(4, 9).value == "Pedro Maich"

    resp = client.get("/api/export/schedule/2026-02.xlsx", headers=ADMIN)
    assert len(openpyxl.load_workbook(io.BytesIO(resp.content)).sheetnames) == 5


def test_timesheets(client):
    _create_month(client)
    doctor_id = _doctor_id(client, "Pedro Maich")
    client.post("/api/assignments/", json={**CELL, "assignment": {"name": "Pedro Maich"}}, headers=ADMIN)

    draft = client.post(
        "/api/timesheets/draft",
        json={"doctor_id": doctor_id, "hospital_id": "porto-feliz", "month_key": "2026-02"},
        headers=ADMIN,
    ).json()
    # Wednesdays from the template plus the saved Tuesday
    assert "2026-02-10" in [e["date"] for e in draft["entries"]]
    assert draft["total_value"] == 1900
    assert client.get("/api/timesheets/", headers=ADMIN).json() == []

    saved = client.put("/api/timesheets/", json=draft, headers=ADMIN).json()
    assert saved["id"] == draft["id"]
    assert len(client.get(f"/api/timesheets/?doctor_id={doctor_id}", headers=ADMIN).json()) == 1
    assert client.get("/api/timesheets/", headers=DOCTOR).json() == []

    resp = client.get(f"/api/export/timesheets/{draft['id']}.xlsx?include_value=false", headers=ADMIN)
    assert resp.status_code == 200
    assert client.get(f"/api/export/timesheets/{draft['id']}.xlsx", headers=DOCTOR).status_code == 404

    assert client.post(f"/api/timesheets/{draft['id']}/finalize", headers=ADMIN).json()["status"] == "finalized"
    assert client.put("/api/timesheets/", json=draft, headers=ADMIN).status_code == 400

    assert client.delete(f"/api/timesheets/{draft['id']}", headers=ADMIN).status_code == 200
    assert client.delete(f"/api/timesheets/{draft['id']}", headers=ADMIN).status_code == 404
    resp = client.post(
        "/api/timesheets/draft",
        json={"doctor_id": "doc-missing", "hospital_id": "porto-feliz", "month_key": "2026-02"},
        headers=ADMIN,
    )
    assert resp.status_code == 404


def test_reminders_are_sent(client, sender):
    _create_month(client)
    doctor_id = _doctor_id(client, "Marcos André")
    client.put(f"/api/doctors/{doctor_id}", json={"email": "marcos@example.com"}, headers=ADMIN)

    assert client.post("/api/notifications/reminders?today=2026-02-01", headers=ADMIN).json() == {"queued": 1}
    assert client.post("/api/notifications/process", headers=ADMIN).json() == {"sent": 1, "failed": 0, "pending": 0}
    assert sender.sent[0]["to"] == "marcos@example.com"
    assert client.get("/api/notifications/logs?status=sent", headers=ADMIN).json()[0]["date_key"] == "2026-02-02"


def test_notification_settings(client):
    settings = client.get("/api/notifications/settings", headers=ADMIN).json()
    assert settings["enable_daily_reminders"] is True
    resp = client.put("/api/notifications/settings", json={"reminder_time": "07:00"}, headers=ADMIN)
    assert resp.json()["reminder_time"] == "07:00"
    assert client.get("/api/notifications/settings", headers=COORDINATOR).status_code == 403


def test_doctors(client):
    _create_month(client)
    created = client.post("/api/doctors/", json={"name": "Dra. Nova", "crm": "123"}, headers=ADMIN).json()
    assert created["type"] == "Normal"
    assert client.post(f"/api/doctors/{created['id']}/toggle-type", headers=ADMIN).json()["type"] == "Dif"

    marcos = _doctor_id(client, "Marcos André")
    renamed = client.put(f"/api/doctors/{marcos}", json={"name": "Marcos A."}, headers=ADMIN).json()
    assert renamed["name"] == "Marcos A."
    assert _week_cell(client, date_key="2026-02-02", week=1) == ["Marcos A."]

    assert client.delete(f"/api/doctors/{created['id']}", headers=ADMIN).status_code == 200
    assert client.put("/api/doctors/doc-missing", json={"name": "X"}, headers=ADMIN).status_code == 404
    assert client.post("/api/doctors/", json={"name": "X", "type": "Senior"}, headers=ADMIN).status_code == 400


def test_structure(client):
    loc = client.post("/api/structure/", json={"name": "Hospital Novo", "theme": "teal"}, headers=ASSISTANT).json()
    assert loc["shifts"][0]["name"] == "Plantão"

    shift = client.post(f"/api/structure/{loc['id']}/shifts", json={"name": "Noturno"}, headers=ADMIN).json()
    resp = client.put(f"/api/structure/{loc['id']}/shifts/{shift['id']}", json={"name": "Noite"}, headers=ADMIN)
    assert resp.json()["name"] == "Noite"
    assert client.delete(f"/api/structure/{loc['id']}/shifts/{shift['id']}", headers=ADMIN).status_code == 200

    resp = client.put(f"/api/structure/{loc['id']}", json={"theme": "rainbow"}, headers=ADMIN)
    assert resp.status_code == 400
    assert client.delete(f"/api/structure/{loc['id']}", headers=ADMIN).status_code == 200
    assert client.delete(f"/api/structure/{loc['id']}", headers=ADMIN).status_code == 404
    assert client.post("/api/structure/", json={"name": "X"}, headers=COORDINATOR).status_code == 403


def test_rules(client):
    rule = client.post(
        "/api/rules/", json={"hospital_name": "Fênix", "shift_name": "Manhã", "value": 800}, headers=ADMIN,
    ).json()
    assert client.put(f"/api/rules/{rule['id']}", json={"value": 900}, headers=ADMIN).json()["value"] == 900
    assert [r["id"] for r in client.get("/api/rules/", params={"hospital_name": "Fênix"}, headers=ADMIN).json()] == [rule["id"]]
    assert client.delete(f"/api/rules/{rule['id']}", headers=ADMIN).status_code == 200
    assert client.delete(f"/api/rules/{rule['id']}", headers=ADMIN).status_code == 404

    # hospital renames carry over to rules
    client.put("/api/structure/salto", json={"name": "Salto SP"}, headers=ADMIN)
    assert client.get("/api/rules/", params={"hospital_name": "Salto"}, headers=ADMIN).json() == []
    assert client.get("/api/rules/", params={"hospital_name": "Salto SP"}, headers=ADMIN).json()


def test_local_users(client):
    resp = client.post(
        "/api/users/",
        json={"username": "ana", "password": "segredo", "name": "Ana", "role": "Coordenador"},
        headers=ADMIN,
    )
    assert "password" not in resp.json()
    assert client.get("/api/users/me", headers={"X-User": "ana"}).json()["role"] == "Coordenador"
    assert [u["username"] for u in client.get("/api/users/", headers=ADMIN).json()] == ["ana"]
    assert client.delete("/api/users/admin", headers=ADMIN).status_code == 403
    assert client.delete("/api/users/ana", headers=ADMIN).status_code == 200
    assert client.delete("/api/users/ana", headers=ADMIN).status_code == 404


def test_profiles_and_claims(client):
    resp = client.post("/api/users/profiles", json={"id": "uid-1", "email": "ana@example.com", "name": "Ana"}, headers=ADMIN)
    assert resp.json()["custom_claims"] == {"admin": False}
    assert client.post("/api/users/profiles", json={"id": "uid-1", "name": "Ana"}, headers=ADMIN).status_code == 400

    resp = client.put("/api/users/profiles/uid-1", json={"role": "ADM"}, headers=ADMIN)
    assert resp.json()["role"] == "ADM"
    assert resp.json()["custom_claims"] == {"admin": True}
    assert client.put("/api/users/profiles/uid-x", json={"name": "X"}, headers=ADMIN).status_code == 404

    # profile users are resolved by e-mail
    assert client.get("/api/users/me", headers={"X-User": "ana@example.com"}).json()["role"] == "ADM"
    assert client.get("/api/claims/", headers={"X-User": "uid-1"}).json()["custom_claims"] == {"admin": True}


def test_claims_endpoints(client):
    assert client.get("/api/claims/").status_code == 401

    boot = {"X-User": "financeiro@ismsaude.com"}
    assert client.post("/api/claims/initialize-admin", json={"name": "Financeiro"}, headers=boot).json()["success"]
    assert client.get("/api/claims/", headers=boot).json()["custom_claims"] == {"admin": True}

    client.post("/api/users/profiles", json={"id": "uid-2", "name": "Bruno"}, headers=ADMIN)
    resp = client.post("/api/claims/admin", json={"target_uid": "uid-2", "is_admin": True}, headers=boot)
    assert resp.json()["success"]
    resp = client.post("/api/claims/admin", json={"target_uid": "uid-1", "is_admin": True}, headers={"X-User": "uid-3"})
    assert resp.status_code == 403
    resp = client.post("/api/claims/initialize-admin", json={}, headers={"X-User": "x@example.com"})
    assert resp.status_code == 403


def test_company_settings(client):
    resp = client.put("/api/settings/company", json={"name": "Nova Empresa"}, headers=ADMIN)
    assert resp.json()["name"] == "Nova Empresa"
    company = client.get("/api/settings/company", headers=DOCTOR).json()
    assert company == {"name": "Nova Empresa", "cnpj": "29.732.524/0001-59"}
    assert client.put("/api/settings/company", json={"name": "X"}, headers=ASSISTANT).status_code == 403


def test_sync_endpoints(client):
    _create_month(client)
    assert client.get("/api/sync/status", headers=ADMIN).json() == {
        "status": "idle", "error_message": None, "retry_count": 0,
    }
    first = client.post("/api/sync/pull", headers=ADMIN).json()
    assert first["changed"] is True
    assert "2026-02" in first["store"]["months"]
    since = first["revision"]
    unchanged = client.post("/api/sync/pull", params={"since": since}, headers=ADMIN).json()
    assert unchanged == {"changed": False, "store": None, "revision": since}


def test_sync_pull_sees_other_writers(client, session_factory):
    _create_month(client)
    since = client.post("/api/sync/pull", headers=ADMIN).json()["revision"]

    other = StoreSync(session_factory, sleep=lambda s: None)
    remote = other.load()
    remote["company_settings"]["name"] = "Remota"
    assert other.save(remote)

    pulled = client.post("/api/sync/pull", params={"since": since}, headers=ADMIN).json()
    assert pulled["changed"] is True
    assert pulled["store"]["company_settings"]["name"] == "Remota"
    assert pulled["revision"] != since
    again = client.post("/api/sync/pull", params={"since": pulled["revision"]}, headers=ADMIN).json()
    assert again["changed"] is False
