import re

from chaussettes.inscriptions import self_service
from chaussettes.utils.tokens import generate_secure_token, slugify, generate_unique_slug


def test_secure_tokens_are_64_hex_chars():
    tokens = {generate_secure_token() for _ in range(20)}

    assert len(tokens) == 20
    assert all(re.fullmatch(r"[0-9a-f]{64}", t) for t in tokens)


def test_slugify_strips_accents():
    assert slugify("Fête de la Musique !") == "fete-de-la-musique"
    assert generate_unique_slug("!!!").startswith("concert-")


async def test_verify(db_session, make_organisateur, make_concert, make_inscription):
    _, organisateur = await make_organisateur()
    concert = await make_concert(organisateur)
    token = generate_secure_token()
    with_token = await make_inscription(concert, email="a@example.com", management_token=token)
    without_token = await make_inscription(concert, email="b@example.com")

    assert (await self_service.verify(db_session, with_token.id, token)).id == with_token.id
    assert await self_service.verify(db_session, with_token.id, None) is None
    assert await self_service.verify(db_session, with_token.id, generate_secure_token()) is None
    assert await self_service.verify(db_session, without_token.id, "") is None
    assert await self_service.verify(db_session, "unknown", token) is None
