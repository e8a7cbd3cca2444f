"""
Shared fixtures: sample lead emails, a fixed clock and global state resets.
"""
from datetime import datetime, timezone

import pytest

from email_lead_parser.models.config import reset_config
from email_lead_parser.models.lead_data import EmailMessage
from email_lead_parser.parsers.lead_classifier import reset_lead_classifier
from email_lead_parser.parsers.parser_registry import reset_parser_registry
from email_lead_parser.processors.email_processor import reset_email_processor
from email_lead_parser.utils.metrics import reset_metrics


ASSURPROSPECT_BODY = """Bonjour,

Transmission d'une fiche AssurProspect

Voici les éléments de la fiche prospect :

Contact
Civilité : Monsieur
Nom : DUPONT
Prénom : Jean
Adresse : 12 rue des Lilas
Code postal : 75011
Ville : Paris
Téléphone : 06 12 34 56 78
Email : jean.dupont@gmail.com

Souscripteur
Date de naissance : 15/03/1980
Profession : Artisan plombier
Régime : TNS
Nombre d'enfants : 2

Conjoint
Civilité : Madame
Nom : DUPONT
Prénom : Marie
Date de naissance : 20/07/1982
Régime : Salarié

Enfants
Date de naissance du 1er enfant : 10/05/2010
Date de naissance du 2ème enfant : 22/09/2013

Besoin
Date d'effet : 01/01/2025
Actuellement assuré : oui

A noter : ce prospect a été vérifié par téléphone.
L'équipe AssurProspect
"""

ASSURLEAD_BODY = (
    "Bonjour,\n"
    "\n"
    "Veuillez trouver ci-dessous un nouveau prospect.\n"
    "\n"
    "user_id\t48213\n"
    "Civilité\tMadame\n"
    "Nom\tMARTIN\n"
    "Prénom\tsophie\n"
    "Date de naissance\t02-04-1975\n"
    "Email\tSophie.Martin@orange.fr\n"
    "Téléphone portable\t07 98 76 54 32\n"
    "Adresse\t3 avenue Victor Hugo\n"
    "Code postal\t69003\n"
    "Ville\tLyon\n"
    "Profession\tInfirmière\n"
    "Régime social\tSalarié\n"
    "Statut\tSalarié\n"
    "Besoin assurance\tMutuelle santé\n"
    "Date d'effet\t15/02/2025\n"
    "\n"
    "Le pôle commercial\n"
    "Cette alerte email est envoyée automatiquement.\n"
)

GENERIC_BODY = """Bonjour,

Nouvelle demande de devis reçue via notre site :

Nom : Bernard
Prénom : Luc
Email : luc.bernard@gmail.com
Téléphone : 06 11 22 33 44
Date de naissance : 08/11/1990
Profession : Comptable
Code postal : 33000
Ville : Bordeaux
Couverture souhaitée : niveau 3/4

Cordialement
"""

FIXED_NOW = datetime(2025, 1, 6, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_globals(monkeypatch):
    """Every test starts from default configuration and fresh singletons."""
    for name in (
        'LEAD_CLASSIFICATION_THRESHOLD',
        'GENERIC_PARSER_THRESHOLD',
        'MAX_CHILDREN',
        'ENABLE_CUSTOM_METRICS',
        'LOG_LEVEL',
        'LOG_FORMAT',
        'ENVIRONMENT',
        'APPLY_DEFAULTS',
    ):
        monkeypatch.delenv(name, raising=False)

    reset_config()
    reset_lead_classifier()
    reset_parser_registry()
    reset_email_processor()
    reset_metrics()
    yield
    reset_config()
    reset_lead_classifier()
    reset_parser_registry()
    reset_email_processor()
    reset_metrics()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def assurprospect_message():
    return EmailMessage(
        id='msg-assurprospect',
        subject="AssurProspect - Transmission d'une fiche",
        sender='AssurProspect <noreply@assurprospect.fr>',
        body=ASSURPROSPECT_BODY
    )


@pytest.fixture
def assurlead_message():
    return EmailMessage(
        id='msg-assurlead',
        subject='Nouveau lead Assurland',
        sender='Assurland <leads@assurland.com>',
        body=ASSURLEAD_BODY
    )


@pytest.fixture
def generic_message():
    return EmailMessage(
        id='msg-generic',
        subject='Demande de devis mutuelle',
        sender='Cabinet Leroy <contact@cabinet-leroy.fr>',
        body=GENERIC_BODY
    )


@pytest.fixture
def non_lead_message():
    return EmailMessage(
        id='msg-newsletter',
        subject='Votre newsletter du mois',
        sender='newsletter@orange.fr',
        body='Bonjour,\n\nMerci pour votre fidélité. A bientôt !\n'
    )
