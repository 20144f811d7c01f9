import pytest

from chaussettes.inscriptions import capacity
from chaussettes.inscriptions.models import Inscription, InscriptionStatus
from chaussettes.utils.errors import ApiError, ApiErrorCode


def _inscription(id, status, nombre_personnes):
    return Inscription(id=id, status=status, nombre_personnes=nombre_personnes, nom="X", email=f"{id}@example.com")


def test_confirmed_count_ignores_waitlist_and_cancelled():
    inscriptions = [
        _inscription("a", InscriptionStatus.CONFIRMED, 3),
        _inscription("b", InscriptionStatus.WAITLISTED, 4),
        _inscription("c", InscriptionStatus.CANCELLED, 2),
        _inscription("d", InscriptionStatus.CONFIRMED, 1),
    ]
    assert capacity.compute_confirmed_count(inscriptions) == 4
    assert capacity.compute_confirmed_count(inscriptions, exclude_id="a") == 1


def test_no_ceiling_always_confirms():
    assert capacity.decide_status(1000, 10, None) == InscriptionStatus.CONFIRMED


def test_ceiling_is_inclusive():
    assert capacity.decide_status(8, 2, 10) == InscriptionStatus.CONFIRMED
    assert capacity.decide_status(8, 3, 10) == InscriptionStatus.WAITLISTED


def test_each_request_is_measured_against_confirmed_baseline():
    confirmed = 0
    first = capacity.decide_status(confirmed, 7, 10)
    confirmed += 7
    second = capacity.decide_status(confirmed, 5, 10)
    third = capacity.decide_status(confirmed, 2, 10)

    assert first == InscriptionStatus.CONFIRMED
    assert second == InscriptionStatus.WAITLISTED
    assert third == InscriptionStatus.CONFIRMED


def test_remaining_places_never_negative():
    assert capacity.remaining_places(12, 10) == 0
    assert capacity.remaining_places(3, 10) == 7
    assert capacity.remaining_places(3, None) is None


def test_ensure_fits_reports_remaining_places():
    capacity.ensure_fits(5, 5, 10)
    capacity.ensure_fits(500, 10, None)

    with pytest.raises(ApiError) as exc:
        capacity.ensure_fits(5, 6, 10)
    assert exc.value.status_code == 400
    assert exc.value.code == ApiErrorCode.BAD_REQUEST
    assert exc.value.message == "Il ne reste que 5 place(s) disponible(s)"


async def test_confirmed_count_query(db_session, make_organisateur, make_concert, make_inscription):
    _, organisateur = await make_organisateur()
    concert = await make_concert(organisateur, max_invites=10)
    first = await make_inscription(concert, email="a@example.com", nombre_personnes=4)
    await make_inscription(concert, email="b@example.com", nombre_personnes=3)
    await make_inscription(concert, email="c@example.com", nombre_personnes=5, status=InscriptionStatus.WAITLISTED)
    await make_inscription(concert, email="d@example.com", nombre_personnes=2, status=InscriptionStatus.CANCELLED)

    assert await capacity.confirmed_count(db_session, concert.id) == 7
    assert await capacity.confirmed_count(db_session, concert.id, exclude_id=first.id) == 3
