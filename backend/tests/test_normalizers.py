from __future__ import annotations

import pytest

from normalizers import (
    disambiguate_weight_or_price,
    normalize_medication_name,
    normalize_price,
    normalize_weight,
    parse_medication_dose,
    parse_medication_frequency,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("18 kg", 18.0),
        ("20 kilos", 20.0),
        ("19,6 kg", 19.6),
        ("19.6", 19.6),
        ("12 Kilogramos", 12.0),
        (19.6, 19.6),
        (18, 18.0),
    ],
)
def test_normalize_weight_accepts_plausible_weights(raw, expected) -> None:
    assert normalize_weight(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "abc", -5, 0, 150, "150 kg", "0 kg"])
def test_normalize_weight_rejects_garbage_and_out_of_range(raw) -> None:
    assert normalize_weight(raw) is None


def test_normalize_weight_treats_three_decimal_digits_as_thousands() -> None:
    # "19.600" reads as 19600, which is not a plausible dog weight.
    assert normalize_weight("19.600") is None


def test_normalize_weight_never_raises_on_odd_types() -> None:
    assert normalize_weight(float("nan")) is None
    assert normalize_weight(["18"]) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("4.900", 4900.0),
        ("$ 4.900", 4900.0),
        ("ARS 1.500,50", 1500.5),
        ("0", 0.0),
        (4900, 4900.0),
        (0, 0.0),
    ],
)
def test_normalize_price(raw, expected) -> None:
    assert normalize_price(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "-10", -3, "gratis"])
def test_normalize_price_rejects(raw) -> None:
    assert normalize_price(raw) is None


def test_normalize_medication_name_title_cases_words() -> None:
    assert normalize_medication_name("  amoxicilina  dosis") == "Amoxicilina Dosis"
    assert normalize_medication_name("CARPROFENO") == "Carprofeno"
    assert normalize_medication_name("") == ""
    assert normalize_medication_name(None) == ""


@pytest.mark.parametrize(
    ("text", "hours"),
    [
        ("tomar cada 12hs", 12),
        ("Cada 8 horas con comida", 8),
        ("cada 6h", 6),
        ("2 veces al día", 12),
        ("dos veces al día", 12),
        ("3 veces al día", 8),
        ("cuatro veces al día", 6),
        ("una vez por semana", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_medication_frequency(text, hours) -> None:
    assert parse_medication_frequency(text) == hours


def test_parse_medication_frequency_prefers_explicit_interval() -> None:
    assert parse_medication_frequency("cada 24 hs (antes era 2 veces al día)") == 24


def test_parse_medication_dose_fraction_of_a_tablet() -> None:
    assert parse_medication_dose("1/2 comprimido") == {
        "fraction": "1/2",
        "amount": 0.5,
        "unit": "comprimidos",
        "form": "comprimido",
    }


def test_parse_medication_dose_milligrams() -> None:
    assert parse_medication_dose("80mg") == {"amount_mg": 80.0, "unit": "mg"}


def test_parse_medication_dose_fraction_and_milligrams_coexist() -> None:
    dose = parse_medication_dose("1/4 comprimido de 200 mg")
    assert dose["fraction"] == "1/4"
    assert dose["amount"] == 0.25
    assert dose["amount_mg"] == 200.0
    assert dose["unit"] == "comprimidos"


def test_parse_medication_dose_liquid_falls_back_to_bare_number() -> None:
    assert parse_medication_dose("2.5 ml") == {"amount": 2.5, "unit": "ml", "form": "líquido"}


def test_parse_medication_dose_empty_and_zero_denominator() -> None:
    assert parse_medication_dose("") == {}
    assert parse_medication_dose(None) == {}
    assert parse_medication_dose("1/0") == {"fraction": "1/0", "amount": 1.0}


@pytest.mark.parametrize(
    ("value", "context", "expected"),
    [
        ("18", "peso del día", {"type": "weight", "value": 18.0}),
        ("4.900", "precio baño", {"type": "price", "value": 4900.0}),
        ("4.900", "", {"type": "price", "value": 4900.0}),
        ("18,5", "", {"type": "weight", "value": 18.5}),
        ("0,5", "", {"type": "price", "value": 0.5}),
        ("abc", "", {"type": "price", "value": None}),
    ],
)
def test_disambiguate_weight_or_price(value, context, expected) -> None:
    assert disambiguate_weight_or_price(value, context) == expected
