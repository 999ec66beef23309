from decimal import Decimal

from restaurant_api.utils import (
    is_valid_email,
    is_valid_phone_number,
    is_valid_price,
    is_valid_quantity,
    round_amount,
    sanitize_text,
)


def test_sanitize_removes_script_tags():
    out = sanitize_text("<script>alert(1)</script>Bob")
    assert "<script>" not in out
    assert out.endswith("Bob")


def test_sanitize_keeps_plain_text_as_typed():
    assert sanitize_text("  Salt & Pepper Wings ") == "Salt & Pepper Wings"
    assert sanitize_text("<b>Miso</b> ramen") == "Miso ramen"


def test_sanitize_drops_nul_and_passes_none():
    assert sanitize_text("Tan\x00men") == "Tanmen"
    assert sanitize_text(None) is None


def test_email_format():
    assert is_valid_email("a@b.co")
    assert not is_valid_email("a@b")
    assert not is_valid_email("a b@c.com")
    assert not is_valid_email("")
    assert not is_valid_email(None)


def test_phone_number_is_optional_but_checked():
    assert is_valid_phone_number(None)
    assert is_valid_phone_number("")
    assert is_valid_phone_number("+31 6 1234-5678")
    assert not is_valid_phone_number("12345")
    assert not is_valid_phone_number("call me")


def test_price_rules():
    assert is_valid_price("0")
    assert is_valid_price("12.50")
    assert is_valid_price(3)
    assert not is_valid_price("-0.01")
    assert not is_valid_price("abc")
    assert not is_valid_price("NaN")
    assert not is_valid_price(True)
    assert not is_valid_price(None)


def test_quantity_rules():
    for ok in (1, 5, "3", 2.0):
        assert is_valid_quantity(ok), ok
    for bad in (0, -1, 1.5, "1.5", "abc", "", None, True, [1]):
        assert not is_valid_quantity(bad), bad


def test_amount_rounding_half_up():
    # Guard against regressions: 2.675 rounds to 2.68, not banker's 2.67
    assert round_amount(Decimal("2.675")) == Decimal("2.68")
    assert round_amount(Decimal("10.125")) == Decimal("10.13")


def test_price_must_fit_the_price_column():
    assert is_valid_price("99999999.99")
    assert not is_valid_price("100000000")
    assert not is_valid_price("1e30")


def test_quantity_must_fit_an_integer_column():
    assert is_valid_quantity(2**31 - 1)
    assert not is_valid_quantity(2**31)
    assert not is_valid_quantity(10**20)
    assert not is_valid_quantity(str(10**20))
    assert not is_valid_quantity(1e20)
