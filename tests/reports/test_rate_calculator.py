from club_attendance.reports.calculator.standard_calculator import StandardRateCalculator


def test_rate_counts_late_as_attended():
    calc = StandardRateCalculator()
    assert calc.rate(attended=8 + 2, total=10) == 100


def test_rate_partial_attendance():
    calc = StandardRateCalculator()
    assert calc.rate(attended=6, total=10) == 60


def test_rate_rounds_half_up():
    calc = StandardRateCalculator()
    assert calc.rate(attended=1, total=8) == 13  # 12.5
    assert calc.rate(attended=5, total=8) == 63  # 62.5
    assert calc.rate(attended=1, total=3) == 33


def test_rate_is_zero_without_records():
    assert StandardRateCalculator().rate(attended=0, total=0) == 0
