import os

# Configuration de test : doit précéder tout import de chaussettes.*
os.environ["POSTGRES_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["APP_URL"] = "https://concert-chaussettes.test"
os.environ["MAIL_SERVER"] = ""
os.environ["LOG_FILE"] = ""

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from chaussettes.main import app  # noqa: E402
from chaussettes.db.session import get_db  # noqa: E402
from chaussettes.db.models import metadata  # noqa: E402
from chaussettes.auth.jwt_handler import create_access_token  # noqa: E402
from chaussettes.auth.models import User, UserRole, Subscription, SubscriptionPlan  # noqa: E402
from chaussettes.accounts.models import Groupe, Organisateur  # noqa: E402
from chaussettes.concerts.models import Concert, ConcertStatus  # noqa: E402
from chaussettes.inscriptions.models import Inscription, InscriptionStatus  # noqa: E402
from chaussettes.utils import email as email_utils  # noqa: E402
from chaussettes.utils.clock import now  # noqa: E402
from chaussettes.utils.rate_limit import RateLimiter, get_rate_limiter  # noqa: E402
from chaussettes.utils.tokens import generate_unique_slug  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def limiter():
    return RateLimiter()


@pytest_asyncio.fixture
async def client(session_factory, limiter):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture les emails au lieu de les envoyer"""
    outbox = []

    async def fake_send(subject, email_to, html):
        outbox.append({"subject": subject, "to": email_to, "html": html})

    monkeypatch.setattr(email_utils, "send_email_async", fake_send)
    return outbox


def auth_headers(user: User) -> dict:
    token = create_access_token({"user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


async def reload(db: AsyncSession, model, pk):
    """Relit une ligne modifiée par une requête HTTP (autre session)"""
    return await db.get(model, pk, populate_existing=True)


# ===========================
# FABRIQUES
# ===========================
@pytest.fixture
def make_organisateur(db_session):
    counter = {"n": 0}

    async def _make(plan: SubscriptionPlan = SubscriptionPlan.FREE, nom: str = "Salon de Léa"):
        counter["n"] += 1
        user = User(email=f"orga{counter['n']}@example.com", name=nom, role=UserRole.ORGANISATEUR)
        user.subscription = Subscription(plan=plan)
        user.organisateur = Organisateur(nom=nom, ville="Lyon")
        db_session.add(user)
        await db_session.commit()
        return user, user.organisateur

    return _make


@pytest.fixture
def make_user(db_session):
    async def _make(role: UserRole, email: str):
        user = User(email=email, name=email.split("@")[0], role=role)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_groupe(db_session):
    counter = {"n": 0}

    async def _make(nom: str = "Les Chaussettes Rouges", contact_email: str = "groupe@example.com",
                    is_visible: bool = True, **profile):
        counter["n"] += 1
        user = User(email=f"groupe{counter['n']}@example.com", name=nom, role=UserRole.GROUPE)
        user.groupe = Groupe(nom=nom, contact_email=contact_email, is_visible=is_visible, **profile)
        db_session.add(user)
        await db_session.commit()
        return user.groupe

    return _make


@pytest.fixture
def make_concert(db_session):
    async def _make(organisateur: Organisateur, *, titre: str = "Concert au salon", max_invites=None,
                    status: ConcertStatus = ConcertStatus.PUBLISHED, days: float = 7, groupe=None, date=None):
        concert = Concert(
            organisateur_id=organisateur.id,
            groupe_id=groupe.id if groupe else None,
            titre=titre,
            date=date or now() + timedelta(days=days),
            adresse_complete="12 rue des Lilas, 69001 Lyon",
            adresse_publique="Lyon 1er",
            ville="Lyon",
            slug=generate_unique_slug(titre),
            max_invites=max_invites,
            status=status,
        )
        db_session.add(concert)
        await db_session.commit()
        return concert

    return _make


@pytest.fixture
def make_inscription(db_session):
    async def _make(concert: Concert, *, email: str, nombre_personnes: int = 1,
                    status: InscriptionStatus = InscriptionStatus.CONFIRMED, prenom: str = "Alice",
                    nom: str = "Martin", management_token=None, telephone=None):
        inscription = Inscription(
            concert_id=concert.id,
            prenom=prenom,
            nom=nom,
            email=email,
            telephone=telephone,
            nombre_personnes=nombre_personnes,
            status=status,
            management_token=management_token,
        )
        db_session.add(inscription)
        await db_session.commit()
        return inscription

    return _make
