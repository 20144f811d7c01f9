# IMPORTER TOUS LES MODULES DE MODÈLES pour enregistrer toutes les tables dans metadata
from chaussettes.auth.models import User, Subscription  # noqa: F401
from chaussettes.accounts.models import Genre, Groupe, Organisateur  # noqa: F401
from chaussettes.concerts.models import Concert  # noqa: F401
from chaussettes.inscriptions.models import Inscription  # noqa: F401
from chaussettes.contacts.models import Contact  # noqa: F401
from chaussettes.avis.models import Avis  # noqa: F401
from chaussettes.devis.models import DemandeDevis  # noqa: F401
from chaussettes.reports.models import Report  # noqa: F401
from chaussettes.db.session import Base

metadata = Base.metadata
