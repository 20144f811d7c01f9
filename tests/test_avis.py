from chaussettes.auth.models import UserRole
from chaussettes.avis.models import Avis
from chaussettes.concerts.models import ConcertStatus
from chaussettes.inscriptions.models import Inscription, InscriptionStatus

from conftest import auth_headers, reload


def vote(email="fan@example.com", note=5, **extra):
    body = {"email": email, "note": note}
    body.update(extra)
    return body


# ===========================
# INVITÉS
# ===========================
async def test_guest_concert_review_is_unique_per_email(client, make_organisateur, make_groupe, make_concert,
                                                        sent_emails):
    _, organisateur = await make_organisateur()
    groupe = await make_groupe(contact_email="band@example.com")
    concert = await make_concert(organisateur, groupe=groupe, status=ConcertStatus.PAST, days=-2)

    first = await client.post(f"/api/avis/concert/{concert.id}", json=vote(nom="Fan", commentaire="Génial"))
    second = await client.post(f"/api/avis/concert/{concert.id}", json=vote(email="FAN@example.com", note=1))

    assert first.status_code == 200
    assert first.json()["success"] is True
    assert second.status_code == 409
    assert second.json()["error"]["message"] == "Un avis a déjà été soumis pour cet email et ce concert"
    assert [mail["to"] for mail in sent_emails] == ["band@example.com"]


async def test_guest_concert_review_requires_groupe(client, make_organisateur, make_concert):
    _, organisateur = await make_organisateur()
    concert = await make_concert(organisateur)

    form = await client.get(f"/api/avis/concert/{concert.id}")
    response = await client.post(f"/api/avis/concert/{concert.id}", json=vote())

    assert form.status_code == 400
    assert response.status_code == 404


async def test_note_must_be_between_one_and_five(client, make_organisateur, make_groupe, make_concert):
    _, organisateur = await make_organisateur()
    groupe = await make_groupe()
    concert = await make_concert(organisateur, groupe=groupe)

    response = await client.post(f"/api/avis/concert/{concert.id}", json=vote(note=6))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_groupe_review_is_unique_per_email(client, make_groupe):
    groupe = await make_groupe()

    first = await client.post(f"/api/avis/groupe/{groupe.id}", json=vote())
    second = await client.post(f"/api/avis/groupe/{groupe.id}", json=vote())

    assert first.status_code == 200
    assert second.status_code == 409


async def test_groupe_and_concert_scopes_are_independent(client, make_organisateur, make_groupe, make_concert):
    _, organisateur = await make_organisateur()
    groupe = await make_groupe()
    concert = await make_concert(organisateur, groupe=groupe)

    on_groupe = await client.post(f"/api/avis/groupe/{groupe.id}", json=vote())
    on_concert = await client.post(f"/api/avis/concert/{concert.id}", json=vote())

    assert on_groupe.status_code == 200
    assert on_concert.status_code == 200


async def test_hidden_groupe_not_found(client, make_groupe):
    groupe = await make_groupe(is_visible=False)

    assert (await client.get(f"/api/avis/groupe/{groupe.id}")).status_code == 404
    assert (await client.post(f"/api/avis/groupe/{groupe.id}", json=vote())).status_code == 404


async def test_groupe_stats_and_moderation(client, make_user, make_groupe):
    groupe = await make_groupe()
    admin = await make_user(UserRole.ADMIN, "admin@example.com")
    for email, note in (("a@example.com", 4), ("b@example.com", 5), ("c@example.com", 5)):
        await client.post(f"/api/avis/groupe/{groupe.id}", json=vote(email=email, note=note))

    stats = await client.get(f"/api/avis/groupe/{groupe.id}")
    assert stats.json()["avgNote"] == 4.7
    assert stats.json()["total"] == 3
    assert "auteurEmail" not in stats.json()["avis"][0]

    target = next(a for a in stats.json()["avis"] if a["note"] == 4)
    hidden = await client.patch(f"/api/admin/avis/{target['id']}", headers=auth_headers(admin),
                                json={"isVisible": False})
    assert hidden.status_code == 200
    assert hidden.json()["isVisible"] is False

    stats = await client.get(f"/api/avis/groupe/{groupe.id}")
    assert stats.json()["avgNote"] == 5.0
    assert stats.json()["total"] == 2


async def test_groupe_stats_without_reviews(client, make_groupe):
    groupe = await make_groupe()

    response = await client.get(f"/api/avis/groupe/{groupe.id}")

    assert response.json() == {"avgNote": None, "total": 0, "avis": []}


async def test_moderation_requires_admin(client, make_organisateur, make_groupe):
    user, _ = await make_organisateur()
    groupe = await make_groupe()
    created = await client.post(f"/api/avis/groupe/{groupe.id}", json=vote())

    response = await client.patch(f"/api/admin/avis/{created.json()['id']}", headers=auth_headers(user),
                                  json={"isVisible": False})

    assert response.status_code == 403


# ===========================
# ORGANISATEUR
# ===========================
async def test_organizer_review_requires_past_concert(client, make_organisateur, make_groupe, make_concert):
    user, organisateur = await make_organisateur()
    groupe = await make_groupe()
    concert = await make_concert(organisateur, groupe=groupe, status=ConcertStatus.PUBLISHED)

    response = await client.post("/api/avis", headers=auth_headers(user), json={
        "groupeId": groupe.id, "concertId": concert.id, "note": 5, "commentaire": "Parfait",
    })

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Le concert n'est pas encore terminé"


async def test_organizer_review_flow(client, db_session, make_organisateur, make_groupe, make_concert):
    user, organisateur = await make_organisateur(nom="Chez Paul")
    groupe = await make_groupe()
    other_groupe = await make_groupe(nom="Autre groupe")
    concert = await make_concert(organisateur, groupe=groupe, status=ConcertStatus.PAST, days=-3)
    headers = auth_headers(user)
    body = {"groupeId": groupe.id, "concertId": concert.id, "note": 4}

    wrong_groupe = await client.post("/api/avis", headers=headers, json={**body, "groupeId": other_groupe.id})
    first = await client.post("/api/avis", headers=headers, json=body)
    second = await client.post("/api/avis", headers=headers, json=body)

    assert wrong_groupe.status_code == 400
    assert wrong_groupe.json()["error"]["message"] == "Ce groupe n'a pas joué à ce concert"
    assert first.status_code == 200
    avis = await reload(db_session, Avis, first.json()["id"])
    assert avis.auteur_nom == "Chez Paul"
    assert avis.auteur_email == user.email
    assert second.status_code == 409
    assert second.json()["error"]["message"] == "Vous avez déjà laissé un avis pour ce concert"


async def test_organizer_cannot_review_foreign_concert(client, make_organisateur, make_groupe, make_concert):
    _, owner = await make_organisateur()
    intruder, _ = await make_organisateur()
    groupe = await make_groupe()
    concert = await make_concert(owner, groupe=groupe, status=ConcertStatus.PAST, days=-3)

    response = await client.post("/api/avis", headers=auth_headers(intruder), json={
        "groupeId": groupe.id, "concertId": concert.id, "note": 4,
    })

    assert response.status_code == 404


# ===========================
# INVITATIONS
# ===========================
async def test_review_invitation_flow(client, db_session, make_organisateur, make_groupe, make_concert,
                                      make_inscription, sent_emails):
    user, organisateur = await make_organisateur()
    groupe = await make_groupe(nom="Les Chaussettes Rouges", contact_email=None)
    concert = await make_concert(organisateur, groupe=groupe, status=ConcertStatus.PAST, days=-1)
    guest = await make_inscription(concert, email="alice@example.com")
    await make_inscription(concert, email="w@example.com", status=InscriptionStatus.WAITLISTED)

    sent = await client.post(f"/api/organisateur/concerts/{concert.id}/review-invitations",
                             headers=auth_headers(user))
    assert sent.json() == {"sent": 1}
    assert [mail["to"] for mail in sent_emails] == ["alice@example.com"]

    token = (await reload(db_session, Inscription, guest.id)).review_token
    assert token

    context = await client.get(f"/api/avis/invitation/{token}")
    assert context.status_code == 200
    assert context.json()["auteurNom"] == "Alice Martin"
    assert context.json()["groupe"]["nom"] == "Les Chaussettes Rouges"

    submitted = await client.post(f"/api/avis/invitation/{token}", json={"note": 5})
    again = await client.post(f"/api/avis/invitation/{token}", json={"note": 5})

    assert submitted.status_code == 200
    assert again.status_code == 409
    assert (await reload(db_session, Inscription, guest.id)).reviewed_at is not None

    resend = await client.post(f"/api/organisateur/concerts/{concert.id}/review-invitations",
                               headers=auth_headers(user))
    assert resend.json() == {"sent": 0}


async def test_review_invitations_only_after_concert(client, make_organisateur, make_groupe, make_concert):
    user, organisateur = await make_organisateur()
    groupe = await make_groupe()
    concert = await make_concert(organisateur, groupe=groupe)

    response = await client.post(f"/api/organisateur/concerts/{concert.id}/review-invitations",
                                 headers=auth_headers(user))

    assert response.status_code == 400


async def test_unknown_invitation_token(client):
    response = await client.get(f"/api/avis/invitation/{'0' * 64}")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Lien invalide ou expiré"
