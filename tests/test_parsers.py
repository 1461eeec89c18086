import pytest

from estoque_mrp.adapters.parsers import parse_custo, parse_percentual, parse_quantidade_raw


@pytest.mark.parametrize(
    "txt,exp_num,exp_unit,exp_desc",
    [
        ("10 KG - Kilogramo", 10.0, "KG", "Kilogramo"),
        ("2,5 lt - litros", 2.5, "LT", "litros"),
        ("5.00 MG - MILIGRAMAs", 5.0, "MG", "MILIGRAMAs"),
        ("10KG", 10.0, "KG", None),
        ("4", 4.0, None, None),
        ("", None, None, None),
        (None, None, None, None),
    ],
)
def test_parse_quantidade_raw(txt, exp_num, exp_unit, exp_desc):
    num, unit, desc = parse_quantidade_raw(txt)
    assert (num == exp_num) or (num is None and exp_num is None)
    assert unit == exp_unit
    assert desc == exp_desc


@pytest.mark.parametrize("txt,esperado", [
    ("5%", 5.0),
    ("5,5 %", 5.5),
    (10, 10.0),
    ("sem merma", None),
    (None, None),
])
def test_parse_percentual(txt, esperado):
    assert parse_percentual(txt) == esperado


@pytest.mark.parametrize("txt,esperado", [
    ("$ 1.234,50", 1234.5),
    ("1,234.50", 1234.5),
    ("12.5", 12.5),
    ("R$ 7", 7.0),
    (3, 3.0),
    ("--", None),
    (None, None),
])
def test_parse_custo(txt, esperado):
    assert parse_custo(txt) == esperado
