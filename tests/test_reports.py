from uuid import uuid4

from chaussettes.auth.models import UserRole
from chaussettes.reports.models import Report, ReportStatus, ReportTarget

from conftest import auth_headers, reload

REASON = "Ce groupe n'est pas venu au concert prévu."


async def test_report_concert_and_moderate(client, db_session, make_organisateur, make_user, make_concert):
    user, organisateur = await make_organisateur()
    admin = await make_user(UserRole.ADMIN, "admin@example.com")
    concert = await make_concert(organisateur)

    created = await client.post("/api/reports", headers=auth_headers(user), json={
        "targetType": "CONCERT", "targetId": concert.id, "reason": REASON,
    })
    assert created.status_code == 201

    listing = await client.get("/api/admin/reports", headers=auth_headers(admin))
    (report,) = listing.json()["reports"]
    assert report["status"] == "PENDING"
    assert report["targetId"] == concert.id
    assert report["reporterId"] == user.id

    reviewed = await client.patch(f"/api/admin/reports/{report['id']}", headers=auth_headers(admin),
                                  json={"status": "REVIEWED"})
    assert reviewed.status_code == 200
    assert (await reload(db_session, Report, report["id"])).status == ReportStatus.REVIEWED

    pending = await client.get("/api/admin/reports", headers=auth_headers(admin), params={"status": "PENDING"})
    assert pending.json() == {"reports": [], "total": 0}


async def test_report_validation(client, make_organisateur, make_groupe):
    user, _ = await make_organisateur()
    groupe = await make_groupe()
    headers = auth_headers(user)

    anonymous = await client.post("/api/reports", json={
        "targetType": "GROUPE", "targetId": groupe.id, "reason": REASON,
    })
    too_short = await client.post("/api/reports", headers=headers, json={
        "targetType": "GROUPE", "targetId": groupe.id, "reason": "Bof",
    })
    missing = await client.post("/api/reports", headers=headers, json={
        "targetType": "GROUPE", "targetId": str(uuid4()), "reason": REASON,
    })

    assert anonymous.status_code == 401
    assert too_short.status_code == 400
    assert too_short.json()["error"]["message"] == "Veuillez décrire le problème (10 caractères minimum)"
    assert missing.status_code == 404


async def test_moderation_is_admin_only(client, db_session, make_organisateur, make_groupe, make_user):
    user, _ = await make_organisateur()
    admin = await make_user(UserRole.ADMIN, "admin@example.com")
    groupe = await make_groupe()
    report = Report(reporter_id=user.id, target_type=ReportTarget.GROUPE, target_id=groupe.id, reason=REASON)
    db_session.add(report)
    await db_session.commit()

    forbidden = await client.patch(f"/api/admin/reports/{report.id}", headers=auth_headers(user),
                                   json={"status": "DISMISSED"})
    back_to_pending = await client.patch(f"/api/admin/reports/{report.id}", headers=auth_headers(admin),
                                         json={"status": "PENDING"})
    unknown = await client.patch(f"/api/admin/reports/{uuid4()}", headers=auth_headers(admin),
                                 json={"status": "DISMISSED"})

    assert forbidden.status_code == 403
    assert back_to_pending.status_code == 400
    assert unknown.status_code == 404
