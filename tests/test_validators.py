import pytest

from email_lead_parser.utils.validators import FieldValidator


@pytest.mark.parametrize('raw, expected', [
    ('06 12 34 56 78', '0612345678'),
    ('06.12.34.56.78', '0612345678'),
    ('+33 6 12 34 56 78', '0612345678'),
    ('0033 (0)6 12 34 56 78', '0612345678'),
    ('123', ''),
    ('6 12 34 56 78', ''),
    ('', ''),
    (None, ''),
])
def test_clean_phone(raw, expected):
    assert FieldValidator.clean_phone(raw) == expected


@pytest.mark.parametrize('raw, expected', [
    ('Paris 75001 France', '75001'),
    ('69003', '69003'),
    ('abc', ''),
    ('123456', ''),
    (None, ''),
])
def test_clean_postal_code(raw, expected):
    assert FieldValidator.clean_postal_code(raw) == expected


@pytest.mark.parametrize('raw, expected', [
    ('01-02-2020', '01/02/2020'),
    (' 15/03/1980 ', '15/03/1980'),
    ('30/02/2020', '30/02/2020'),
    ('32/01/2020', ''),
    ('01/13/2020', ''),
    ('2020-02-01', ''),
    ('', ''),
])
def test_clean_date(raw, expected):
    assert FieldValidator.clean_date(raw) == expected


def test_calendar_check_is_stricter_than_clean_date():
    assert FieldValidator.is_valid_calendar_date('29/02/2024')
    assert not FieldValidator.is_valid_calendar_date('29/02/2023')
    assert not FieldValidator.is_valid_calendar_date('1/2/2020')


def test_clean_email():
    assert FieldValidator.clean_email('  Jean.Dupont@Gmail.com ') == 'jean.dupont@gmail.com'
    assert FieldValidator.clean_email('jean.dupont@') == ''
    assert FieldValidator.clean_email('pas une adresse') == ''
    assert FieldValidator.clean_email(None) == ''


def test_validate_email_address():
    is_valid, normalized = FieldValidator.validate_email_address('marie.durand@orange.fr')
    assert is_valid
    assert normalized == 'marie.durand@orange.fr'

    assert FieldValidator.validate_email_address('marie..durand@orange.fr') == (False, None)


def test_validate_field_rejects_leftover_markup():
    assert FieldValidator.validate_field('  Dupont ') == 'Dupont'
    assert FieldValidator.validate_field('Dupont&nbsp;') == ''
    assert FieldValidator.validate_field('<b>Dupont</b>') == ''
    assert FieldValidator.validate_field('x' * 101) == ''
    assert FieldValidator.validate_field('x' * 120, max_length=120) == 'x' * 120


def test_format_checks():
    assert FieldValidator.is_valid_email('luc.bernard@gmail.com')
    assert not FieldValidator.is_valid_email('luc.bernard@gmail')
    assert not FieldValidator.is_valid_email('luc..bernard@gmail.com')
    assert FieldValidator.clean_email('luc..bernard@gmail.com') == ''
    assert FieldValidator.is_valid_phone('06 11 22 33 44')
    assert not FieldValidator.is_valid_phone('16 11 22 33 44')
    assert FieldValidator.is_valid_postal_code('33000')
    assert not FieldValidator.is_valid_postal_code('3300')
