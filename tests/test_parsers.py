from email_lead_parser.models.config import ParsingConfig
from email_lead_parser.models.lead_data import ConfidenceLevel, EmailMessage, ProvenanceSource
from email_lead_parser.parsers.base_parser import BaseParser
from email_lead_parser.parsers.implementations import (
    AssurleadParser,
    AssurProspectParser,
    GenericParser
)

from .conftest import FIXED_NOW


def values(group):
    return {name: field.value for name, field in group.present_fields().items()}


# AssurProspect

def test_assurprospect_can_parse(assurprospect_message, assurlead_message, generic_message):
    parser = AssurProspectParser()

    assert parser.can_parse(assurprospect_message)
    assert not parser.can_parse(assurlead_message)
    assert not parser.can_parse(generic_message)


def test_assurprospect_happy_path(assurprospect_message, fixed_clock):
    result = AssurProspectParser(clock=fixed_clock).parse(assurprospect_message)

    assert result.success
    assert result.parser_used == 'assurprospect'
    record = result.record

    assert values(record.subscriber) == {
        'civility': 'MONSIEUR',
        'last_name': 'DUPONT',
        'first_name': 'Jean',
        'birth_date': '15/03/1980',
        'email': 'jean.dupont@gmail.com',
        'telephone': '0612345678',
        'address': '12 rue des Lilas',
        'postal_code': '75011',
        'city': 'PARIS',
        'department_code': '75',
        'regime': 'TNS',
        'profession': 'Artisan plombier',
    }
    assert record.subscriber.department_code.source == ProvenanceSource.INFERRED
    assert record.subscriber.last_name.original_text == 'Nom : DUPONT'

    assert values(record.spouse) == {
        'civility': 'MADAME',
        'last_name': 'DUPONT',
        'first_name': 'Marie',
        'birth_date': '20/07/1982',
        'regime': 'SECURITE_SOCIALE',
    }
    assert [child.birth_date.value for child in record.children] == ['10/05/2010', '22/09/2013']

    assert record.project.date_effet.value == '01/01/2025'
    assert record.project.currently_insured.value is True

    metadata = record.metadata
    assert metadata.parser_used == 'assurprospect'
    assert metadata.source_message_id == 'msg-assurprospect'
    assert metadata.parsing_date == FIXED_NOW.isoformat()
    assert metadata.confidence == ConfidenceLevel.HIGH
    assert metadata.parsed_fields_count == 12
    assert metadata.defaulted_fields_count == 0


def test_assurprospect_is_deterministic(assurprospect_message, fixed_clock):
    parser = AssurProspectParser(clock=fixed_clock)

    assert parser.parse(assurprospect_message) == parser.parse(assurprospect_message)


def test_assurprospect_ignores_signature(fixed_clock):
    body = (
        "Transmission d'une fiche AssurProspect\n"
        "Voici les éléments de la fiche :\n"
        "Nom : ROUX\n"
        "Prénom : Alice\n"
        "A noter : ce prospect souhaite être rappelé.\n"
        "L'équipe AssurProspect\n"
        "Ville : Nantes\n"
    )
    message = EmailMessage(id='m1', body=body)

    record = AssurProspectParser(clock=fixed_clock).parse(message).record

    assert record.subscriber.last_name.value == 'ROUX'
    assert record.subscriber.city is None


def test_assurprospect_dialect_rules(fixed_clock):
    body = (
        "Transmission d'une fiche AssurProspect\n"
        "Voici les éléments de la fiche :\n"
        "Nom : GARNIER\n"
        "Prénom : Hugo\n"
        "Secteur d'activité : Bâtiment\n"
        "Nombre de salariés : 3\n"
        "Type de contrat : Santé collective\n"
    )
    message = EmailMessage(id='m1', body=body)

    record = AssurProspectParser(clock=fixed_clock).parse(message).record

    assert record.subscriber.profession.value == 'Bâtiment'
    assert record.subscriber.profession.confidence == ConfidenceLevel.MEDIUM
    assert record.subscriber.status.value == 'TNS'
    assert record.subscriber.status.source == ProvenanceSource.INFERRED
    assert record.project.plan.value == 'Santé collective'


def test_assurprospect_child_blocks_and_inline_spouse(fixed_clock):
    body = (
        "Transmission d'une fiche AssurProspect\n"
        "Voici les éléments de la fiche :\n"
        "Nom : FAURE\n"
        "Prénom : Léa\n"
        "Conjoint : Prénom : Tom Date de naissance : 01/02/1984\n"
        "Enfant 1\n"
        "Sexe : Garçon\n"
        "Date de naissance : 05/06/2015\n"
        "Enfant 2\n"
        "Sexe : Fille\n"
    )
    message = EmailMessage(id='m1', body=body)

    record = AssurProspectParser(clock=fixed_clock).parse(message).record

    assert values(record.spouse) == {'first_name': 'Tom', 'birth_date': '01/02/1984'}
    assert len(record.children) == 2
    assert values(record.children[0]) == {'birth_date': '05/06/2015', 'gender': 'M'}
    assert values(record.children[1]) == {'gender': 'F'}


# Assurlead

def test_assurlead_can_parse(assurlead_message, generic_message):
    parser = AssurleadParser()

    assert parser.can_parse(assurlead_message)
    assert not parser.can_parse(generic_message)


def test_assurlead_tabular_email(assurlead_message, fixed_clock):
    result = AssurleadParser(clock=fixed_clock).parse(assurlead_message)

    assert result.success
    record = result.record
    assert values(record.subscriber) == {
        'civility': 'MADAME',
        'last_name': 'MARTIN',
        'first_name': 'Sophie',
        'birth_date': '02/04/1975',
        'email': 'sophie.martin@orange.fr',
        'telephone': '0798765432',
        'address': '3 avenue Victor Hugo',
        'postal_code': '69003',
        'city': 'LYON',
        'department_code': '69',
        'profession': 'Infirmière',
        'regime': 'SECURITE_SOCIALE',
        'status': 'SALARIE',
    }
    assert record.project.date_effet.value == '15/02/2025'
    assert record.project.plan.value == 'Mutuelle santé'
    assert record.project.plan.confidence == ConfidenceLevel.MEDIUM
    assert record.spouse is None
    assert record.children == []
    assert result.warnings == ['User ID: 48213']


def test_assurlead_table_family(fixed_clock):
    body = (
        "Civilité\tMonsieur\n"
        "Nom\tBLANC\n"
        "Prénom\tEric\n"
        "Nom conjoint\tBLANC\n"
        "Prénom conjoint\tJulie\n"
        "Enfant 1 date de naissance\t12/12/2012\n"
        "Enfant 1 sexe\tfille\n"
        "Je souhaite résilier mon contrat actuel.\n"
    )
    message = EmailMessage(id='m1', sender='leads@assurlead.fr', body=body)

    record = AssurleadParser(clock=fixed_clock).parse(message).record

    assert record.subscriber.last_name.value == 'BLANC'
    assert values(record.spouse) == {'last_name': 'BLANC', 'first_name': 'Julie'}
    assert len(record.children) == 1
    assert values(record.children[0]) == {'birth_date': '12/12/2012', 'gender': 'F'}
    assert record.project.resiliation.value is True


# Generic

def test_generic_parser(generic_message, fixed_clock):
    parser = GenericParser(clock=fixed_clock)

    assert parser.can_parse(generic_message)
    result = parser.parse(generic_message)

    assert result.success
    subscriber = result.record.subscriber
    assert subscriber.last_name.value == 'BERNARD'
    assert subscriber.first_name.value == 'Luc'
    assert subscriber.postal_code.value == '33000'
    assert subscriber.department_code.value == '33'
    assert result.record.project.plan.value == 'Niveau 3/4'
    assert result.record.project.plan.confidence == ConfidenceLevel.MEDIUM
    assert result.warnings == []


def test_generic_parser_warns_on_low_score(fixed_clock):
    body = "Nom : Petit\nPrénom : Claire\nEmail : claire.petit@orange.fr\nTéléphone : 0123456789\n"
    message = EmailMessage(id='m1', body=body)
    parser = GenericParser(config=ParsingConfig(generic_threshold=1.5), clock=fixed_clock)

    assert parser.can_parse(message)
    result = parser.parse(message)

    assert result.warnings == ['Low confidence extraction (score: 1.5)']


def test_generic_parser_rejects_below_threshold(non_lead_message):
    assert not GenericParser().can_parse(non_lead_message)


# Base parser

class ExplodingParser(AssurProspectParser):
    name = "exploding"

    def _extract(self, message):
        raise ValueError("boom")


def test_extraction_fault_becomes_failure_result(assurprospect_message):
    result = ExplodingParser().parse(assurprospect_message)

    assert not result.success
    assert result.record is None
    assert result.error_code == 'EXTRACTION_FAILED'
    assert result.errors == ['Failed to parse exploding email: Extraction failed: boom']


def test_empty_subscriber_has_low_confidence(fixed_clock):
    message = EmailMessage(id='m1', body='')

    record = GenericParser(clock=fixed_clock).parse(message).record

    assert record.subscriber.is_empty()
    assert record.metadata.confidence == ConfidenceLevel.LOW
    assert record.metadata.parsed_fields_count == 0


def test_extract_main_block():
    raw = "intro\nstart\nConjoint\nPrénom : Eve\nA noter : fin\nsignature"

    block = BaseParser.extract_main_block(raw, raw.index('start'), ('a noter',))

    assert block == "start\nConjoint\nPrénom : Eve"
    assert BaseParser.extract_main_block('', 0, ('a noter',)) == ''


def test_spouse_section_does_not_fill_subscriber_fields(fixed_clock):
    body = (
        "Nom : Roux\n"
        "Prénom : Paul\n"
        "Email : paul.roux@gmail.com\n"
        "\n"
        "Conjoint\n"
        "Prénom : Julie\n"
        "Date de naissance : 01/02/1980\n"
        "Régime : Salarié\n"
        "Code postal : 31000\n"
    )
    message = EmailMessage(id='m1', body=body)

    record = GenericParser(clock=fixed_clock).parse(message).record

    assert record.subscriber.first_name.value == 'Paul'
    assert record.subscriber.birth_date is None
    assert record.subscriber.regime is None
    assert record.subscriber.postal_code.value == '31000'
    assert record.spouse.first_name.value == 'Julie'
    assert record.spouse.birth_date.value == '01/02/1980'


def test_without_spouse_removes_section_and_inline_line():
    content = "Nom : Roux\nConjoint : Prénom : Tom\nVille : Lyon"

    assert BaseParser.without_spouse(content) == "Nom : Roux\n\nVille : Lyon"
    assert BaseParser.without_spouse("Nom : Roux\nConjoint\nPrénom : Eve\nEnfants\nx") == (
        "Nom : Roux\nEnfants\nx"
    )


def test_html_only_body_is_read(fixed_clock):
    message = EmailMessage.model_validate({
        'id': 'm1',
        'from': 'contact@cabinet-leroy.fr',
        'body': '   ',
        'htmlBody': '<p>Nom : Perrin</p><p>Pr&eacute;nom : Anne</p>',
    })

    record = GenericParser(clock=fixed_clock).parse(message).record

    assert record.subscriber.last_name.value == 'PERRIN'
    assert record.subscriber.first_name.value == 'Anne'
