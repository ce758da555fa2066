import pytest

from booking_service.pricing import adjustment_percentage, compute_price, format_price


@pytest.mark.parametrize(
    "base_price, temperature, expected",
    [
        (100, 21, (0, 100.00)),
        (100, 18, (3, 115.00)),
        (250, 15, (6, 325.00)),
        (250, 27, (6, 325.00)),
    ],
)
def test_reference_pricing_table(base_price, temperature, expected):
    assert compute_price(base_price, temperature, 21, 0.05) == expected


def test_defaults_match_reference_deployment():
    assert compute_price(100, 18) == (3, 115.00)


def test_rounds_half_up_to_cents():
    # 2.5 * 1.07 is exactly 2.675
    assert compute_price(2.5, 22, 21, 0.07) == (1, 2.68)


def test_same_inputs_give_same_price():
    results = {compute_price(199.99, 24.5, 21, 0.05) for _ in range(50)}
    assert len(results) == 1


def test_fractional_temperatures():
    deviation, adjusted = compute_price(100, 19.5, 21, 0.05)
    assert deviation == 1.5
    assert adjusted == 107.5


def test_zero_factor_keeps_base_price():
    assert compute_price(80, 35, 21, 0) == (14, 80.0)


def test_rejects_negative_inputs():
    with pytest.raises(ValueError):
        compute_price(-1, 21)
    with pytest.raises(ValueError):
        compute_price(100, 21, 21, -0.05)


@pytest.mark.parametrize("temperature", [float("inf"), float("-inf"), float("nan")])
def test_rejects_non_finite_temperature(temperature):
    with pytest.raises(ValueError):
        compute_price(100, temperature)


def test_deviation_is_exact_before_rounding():
    # 24.7 - 21 in binary floats is 3.6999..., which would round 1.185 down
    assert compute_price(1, 24.7, 21, 0.05) == (3.7, 1.19)


def test_adjustment_percentage_and_format():
    assert adjustment_percentage(250, 325) == 30.0
    assert adjustment_percentage(0, 0) == 0.0
    assert format_price(325) == "$325.00"
