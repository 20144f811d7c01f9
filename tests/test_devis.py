from datetime import timedelta
from uuid import uuid4

from chaussettes.auth.models import UserRole
from chaussettes.devis.models import DemandeDevis
from chaussettes.utils.clock import now

from conftest import auth_headers, reload


def demande(groupe_id, **extra):
    body = {
        "groupeId": str(groupe_id),
        "nom": "Paul Martin",
        "email": "Paul@Example.com",
        "dateSouhaitee": (now() + timedelta(days=60)).isoformat(),
        "lieu": "Jardin, Nantes",
        "nombreInvites": "30-40",
        "message": "Pour un anniversaire",
    }
    body.update(extra)
    return body


async def test_create_devis_notifies_groupe(client, db_session, make_groupe, sent_emails):
    groupe = await make_groupe(contact_email="band@example.com")

    response = await client.post("/api/devis", json=demande(groupe.id, telephone="06 12 34 56 78"))

    assert response.status_code == 201
    saved = await reload(db_session, DemandeDevis, response.json()["id"])
    assert saved.groupe_id == groupe.id
    assert saved.email == "paul@example.com"
    assert saved.telephone == "06 12 34 56 78"
    assert saved.is_read is False
    assert [mail["to"] for mail in sent_emails] == ["band@example.com"]


async def test_devis_without_contact_email_sends_nothing(client, make_groupe, sent_emails):
    groupe = await make_groupe(contact_email=None)

    response = await client.post("/api/devis", json=demande(groupe.id))

    assert response.status_code == 201
    assert sent_emails == []


async def test_devis_validation(client, make_groupe):
    groupe = await make_groupe()

    unknown = await client.post("/api/devis", json=demande(uuid4()))
    no_lieu = await client.post("/api/devis", json=demande(groupe.id, lieu="   "))
    bad_date = await client.post("/api/devis", json=demande(groupe.id, dateSouhaitee="demain"))

    assert unknown.status_code == 404
    assert unknown.json()["error"]["message"] == "Groupe non trouvé"
    assert no_lieu.status_code == 400
    assert no_lieu.json()["error"]["message"] == "Le lieu est requis"
    assert bad_date.status_code == 400


async def test_groupe_reads_its_devis(client, make_groupe):
    groupe = await make_groupe()
    other = await make_groupe(nom="Autre groupe")
    headers = auth_headers(groupe.user)
    first = await client.post("/api/devis", json=demande(groupe.id, nom="Premier"))
    await client.post("/api/devis", json=demande(groupe.id, nom="Second"))
    foreign = await client.post("/api/devis", json=demande(other.id))

    listing = await client.get("/api/groupe/devis", headers=headers)
    assert listing.status_code == 200
    assert {d["nom"] for d in listing.json()["devis"]} == {"Premier", "Second"}
    assert listing.json()["unread"] == 2

    read = await client.patch("/api/groupe/devis", headers=headers, json={"id": first.json()["id"]})
    stolen = await client.patch("/api/groupe/devis", headers=headers, json={"id": foreign.json()["id"]})

    assert read.json() == {"success": True}
    assert stolen.status_code == 404
    listing = await client.get("/api/groupe/devis", headers=headers)
    assert listing.json()["unread"] == 1


async def test_devis_inbox_is_for_groupes_only(client, make_organisateur, make_user):
    organizer, _ = await make_organisateur()
    bare_groupe_user = await make_user(UserRole.GROUPE, "sans-profil@example.com")

    assert (await client.get("/api/groupe/devis")).status_code == 401
    assert (await client.get("/api/groupe/devis", headers=auth_headers(organizer))).status_code == 403
    assert (await client.get("/api/groupe/devis", headers=auth_headers(bare_groupe_user))).status_code == 404
