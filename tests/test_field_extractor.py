import pytest

from email_lead_parser.models.lead_data import ConfidenceLevel, ParsedField, ProvenanceSource
from email_lead_parser.parsers.field_extractor import (
    FieldExtractor,
    normalize_civility,
    normalize_regime,
    normalize_status,
    normalize_category,
    title_name
)


def test_labeled_identity_fields():
    content = "Civilité : Madame\nNom : durand\nPrénom : marie-claire\nDate de naissance : 04-09-1985"

    identity = FieldExtractor.extract_identity(content)

    assert identity['civility'].value == 'MADAME'
    assert identity['last_name'].value == 'DURAND'
    assert identity['first_name'].value == 'Marie-Claire'
    assert identity['birth_date'].value == '04/09/1985'
    assert all(field.confidence == ConfidenceLevel.HIGH for field in identity.values())


def test_parsed_field_keeps_matched_text():
    field = FieldExtractor.extract_last_name("Bonjour\nNom : Dupont\n")

    assert field.source == ProvenanceSource.PARSED
    assert field.original_text == 'Nom : Dupont'


def test_markdown_labels():
    content = "**Nom :** Lefebvre\n**Prénom** Paul"

    assert FieldExtractor.extract_last_name(content).value == 'LEFEBVRE'
    assert FieldExtractor.extract_first_name(content).value == 'Paul'


def test_first_name_is_not_taken_from_last_name_label():
    assert FieldExtractor.extract_last_name("Prénom : Jean") is None


def test_capture_stops_at_next_label_on_same_line():
    assert FieldExtractor.extract_profession("Profession : Boulanger Ville : Tours").value == 'Boulanger'


def test_birth_date_fallback_is_low_and_skips_foreign_dates():
    content = "Date d'effet : 01/01/2025\nEnfant né le 03/03/2015\nNé en 12/06/1979"

    field = FieldExtractor.extract_birth_date(content)

    assert field.value == '12/06/1979'
    assert field.confidence == ConfidenceLevel.LOW


def test_missing_field_returns_none():
    assert FieldExtractor.extract_email("Pas d'adresse ici") is None
    assert FieldExtractor.extract_phone("") is None
    assert FieldExtractor.extract_birth_date("") is None


def test_contact_fields():
    content = (
        "Adresse : 8 place Bellecour\n"
        "Code postal : 69002\n"
        "Ville : Lyon\n"
        "Portable : +33 7 11 22 33 44\n"
        "E-mail : Paul.Girard@Orange.fr"
    )

    contact = FieldExtractor.extract_contact_info(content)

    assert contact['address'].value == '8 place Bellecour'
    assert contact['postal_code'].value == '69002'
    assert contact['city'].value == 'LYON'
    assert contact['telephone'].value == '0711223344'
    assert contact['email'].value == 'paul.girard@orange.fr'


def test_unlabeled_contact_fallbacks_have_lower_confidence():
    content = "Appelez-moi au 06 98 76 54 32\n13008 Marseille\npaul.girard@gmail.com"

    phone = FieldExtractor.extract_phone(content)
    postal_code = FieldExtractor.extract_postal_code(content)
    city = FieldExtractor.extract_city(content)
    email = FieldExtractor.extract_email(content)

    assert (phone.value, phone.confidence) == ('0698765432', ConfidenceLevel.MEDIUM)
    assert (postal_code.value, postal_code.confidence) == ('13008', ConfidenceLevel.MEDIUM)
    assert (city.value, city.confidence) == ('MARSEILLE', ConfidenceLevel.MEDIUM)
    assert (email.value, email.confidence) == ('paul.girard@gmail.com', ConfidenceLevel.MEDIUM)


@pytest.mark.parametrize('postal_code, department', [
    ('75011', '75'),
    ('01000', '01'),
    ('97411', '974'),
    ('97200', '972'),
    ('20000', '2A'),
    ('20199', '2A'),
    ('20200', '2B'),
    ('20290', '2B'),
    ('00100', None),
    ('7501', None),
    (None, None),
])
def test_department_from_postal_code(postal_code, department):
    assert FieldExtractor.department_from_postal_code(postal_code) == department


def test_infer_department_is_marked_inferred():
    postal_code = ParsedField(value='33000')

    department = FieldExtractor.infer_department(postal_code)

    assert department.value == '33'
    assert department.source == ProvenanceSource.INFERRED
    assert FieldExtractor.infer_department(None) is None


def test_professional_fields():
    content = "Profession : Kinésithérapeute\nRégime obligatoire : Régime général\nStatut : Profession libérale"

    info = FieldExtractor.extract_professional_info(content)

    assert info['profession'].value == 'Kinésithérapeute'
    assert info['regime'].value == 'SECURITE_SOCIALE'
    assert info['status'].value == 'PROFESSION_LIBERALE'
    assert info['category'] is None


def test_unknown_regime_is_kept_with_low_confidence():
    field = FieldExtractor.extract_regime("Régime : Caisse des marins")

    assert field.value == 'Caisse des marins'
    assert field.confidence == ConfidenceLevel.LOW


@pytest.mark.parametrize('raw, expected', [
    ('Sécurité sociale', 'SECURITE_SOCIALE'),
    ('Travailleur non salarié', 'TNS'),
    ('RSI', 'TNS'),
    ('Alsace-Moselle', 'ALSACE_MOSELLE'),
    ('MSA', 'AGRICOLE'),
])
def test_normalize_regime(raw, expected):
    assert normalize_regime(raw) == expected


@pytest.mark.parametrize('raw, expected', [
    ('Retraité', 'RETRAITE'),
    ('Gérant de société', 'TNS'),
    ('Fonctionnaire', 'FONCTIONNAIRE'),
    ('Salarié cadre', 'SALARIE'),
    ('Étudiante', 'ETUDIANT'),
    ('Intermittent', 'Intermittent'),
])
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


def test_small_normalizers():
    assert normalize_civility('Mme') == 'MADAME'
    assert normalize_civility('Mlle') == 'MADEMOISELLE'
    assert normalize_civility('M.') == 'MONSIEUR'
    assert normalize_category('Non cadre') == 'NON_CADRES'
    assert normalize_category('Cadre') == 'CADRES'
    assert title_name("JEAN-PIERRE d'ARTOIS") == "Jean-Pierre D'Artois"


def test_project_fields():
    content = (
        "Date d'effet souhaitée : 01-03-2025\n"
        "Gamme : Santé Confort\n"
        "Loi Madelin : non\n"
        "Résiliation : oui\n"
        "Déjà assuré : oui"
    )

    assert FieldExtractor.extract_date_effet(content).value == '01/03/2025'
    assert FieldExtractor.extract_plan(content).value == 'Santé Confort'
    madelin = FieldExtractor.extract_madelin(content)
    assert madelin.value is False
    assert madelin.confidence == ConfidenceLevel.HIGH
    assert FieldExtractor.extract_resiliation(content).value is True
    assert FieldExtractor.extract_currently_insured(content).value is True


def test_flag_mention_without_answer_is_medium():
    field = FieldExtractor.extract_madelin("Le prospect est intéressé par la loi Madelin.")

    assert field.value is True
    assert field.confidence == ConfidenceLevel.MEDIUM
    assert FieldExtractor.extract_resiliation("Rien à signaler") is None


def test_detect_tabular_structure():
    assert FieldExtractor.detect_tabular_structure("Nom | Dupont\nPrénom | Jean")
    assert FieldExtractor.detect_tabular_structure("*Nom* Dupont\n*Prénom* Jean")
    assert not FieldExtractor.detect_tabular_structure("Nom : Dupont\nPrénom : Jean")


def test_has_tab_structure_reads_raw_tabs():
    assert FieldExtractor.has_tab_structure("Nom\tDupont\nPrénom\tJean")
    assert not FieldExtractor.has_tab_structure("Nom\tDupont")


def test_extract_from_table_rows():
    content = "Nom | Dupont\nCode postal | 75011\n*Ville* Paris"

    assert FieldExtractor.extract_from_table(content, 'nom').value == 'Dupont'
    assert FieldExtractor.extract_from_table(content, r'code\s+postal').value == '75011'
    assert FieldExtractor.extract_from_table(content, 'ville').value == 'Paris'
    assert FieldExtractor.extract_from_table(content, 'profession') is None


def test_extract_from_table_header_row():
    content = "Nom | Prénom | Ville\nDupont | Jean | Paris"

    field = FieldExtractor.extract_from_table(content, 'ville')

    assert field.value == 'Paris'
    assert field.confidence == ConfidenceLevel.MEDIUM


def test_detect_spouse_and_children():
    assert FieldExtractor.detect_spouse_and_children("Situation : mariée, 3 enfants") == (True, 3)
    assert FieldExtractor.detect_spouse_and_children("Nombre d'enfants : 2") == (False, 2)
    assert FieldExtractor.detect_spouse_and_children("Enfant 1 : 2010\nEnfant 2 : 2012") == (False, 2)
    assert FieldExtractor.detect_spouse_and_children(
        "Date de naissance du 1er enfant : 01/01/2010"
    ) == (False, 1)
    assert FieldExtractor.detect_spouse_and_children("Célibataire") == (False, 0)


def test_gender_and_child_birth_date():
    block = "Enfant 1\nSexe : Fille\nNé(e) le 02/02/2012"

    assert FieldExtractor.extract_gender(block).value == 'F'
    assert FieldExtractor.extract_child_birth_date(block).value == '02/02/2012'
    assert FieldExtractor.extract_child_birth_date("Enfant 2 : 14/07/2016").value == '14/07/2016'
