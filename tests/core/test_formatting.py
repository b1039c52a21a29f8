from salarymap.core.formatting import format_delta, format_salary, humanize_currency, humanize_number


def test_humanize_number_uses_units_above_ten_thousand() -> None:
    assert humanize_number(9_500) == "9,500"
    assert humanize_number(84_500, short=True) == "84.5k"
    assert humanize_number(-2_500_000) == "-2.5 million"


def test_currency_and_salary_formats() -> None:
    assert humanize_currency(84_500, short=True) == "$ 84.5k"
    assert format_salary(100_000.4) == "$100,000"
    assert format_salary(None) == "—"


def test_delta_is_signed_and_handles_missing_values() -> None:
    assert format_delta(50_000) == "+$50,000"
    assert format_delta(-1_250) == "-$1,250"
    assert format_delta(0) == "+$0"
    assert format_delta(None) == "no data"
