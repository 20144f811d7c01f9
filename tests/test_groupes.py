from chaussettes.accounts.models import Genre


async def make_genres(db_session, *noms):
    genres = [Genre(nom=nom) for nom in noms]
    db_session.add_all(genres)
    await db_session.commit()
    return genres


async def test_search_filters_and_ordering(client, db_session, make_groupe):
    jazz, folk = await make_genres(db_session, "Jazz", "Folk")
    await make_groupe(nom="Zébulon Trio", ville="Nantes", region="Pays de la Loire", genres=[jazz])
    await make_groupe(nom="Acoustic Duo", ville="Nantes", region="Pays de la Loire", genres=[folk])
    await make_groupe(nom="Boosté", ville="Lyon", region="Auvergne-Rhône-Alpes", is_boosted=True,
                      genres=[jazz, folk])
    await make_groupe(nom="Groupe caché", ville="Nantes", is_visible=False)

    everything = await client.get("/api/groupes/search")
    assert [g["nom"] for g in everything.json()["groupes"]] == ["Boosté", "Acoustic Duo", "Zébulon Trio"]

    in_nantes = await client.get("/api/groupes/search", params={"ville": "nant"})
    assert [g["nom"] for g in in_nantes.json()["groupes"]] == ["Acoustic Duo", "Zébulon Trio"]

    by_name = await client.get("/api/groupes/search", params={"q": "trio"})
    assert [g["nom"] for g in by_name.json()["groupes"]] == ["Zébulon Trio"]

    by_genre = await client.get("/api/groupes/search", params={"genres": f"{jazz.id},"})
    assert [g["nom"] for g in by_genre.json()["groupes"]] == ["Boosté", "Zébulon Trio"]


async def test_search_result_shape(client, db_session, make_groupe):
    (folk,) = await make_genres(db_session, "Folk")
    await make_groupe(nom="Acoustic Duo", contact_email="duo@example.com", departement="Loire-Atlantique",
                      youtube_videos=["https://youtu.be/abc"], genres=[folk])

    response = await client.get("/api/groupes/search", params={"departement": "loire"})

    assert response.status_code == 200
    (groupe,) = response.json()["groupes"]
    assert groupe["contactEmail"] == "duo@example.com"
    assert groupe["youtubeVideos"] == ["https://youtu.be/abc"]
    assert groupe["isBoosted"] is False
    assert groupe["genres"] == [{"id": folk.id, "nom": "Folk"}]
