"""Phone number normalization for SMS delivery."""

import pytest

from edulingo.messaging.sms import InvalidPhoneNumberError, normalize_phone_number


class TestNormalizePhoneNumber:
    def test_local_nine_digits(self):
        assert normalize_phone_number("901234567") == "+998901234567"

    def test_country_code_without_plus(self):
        assert normalize_phone_number("998901234567") == "+998901234567"

    def test_already_international(self):
        assert normalize_phone_number("+998901234567") == "+998901234567"

    def test_separators_stripped(self):
        assert normalize_phone_number(" +998 (90) 123-45-67 ") == "+998901234567"

    def test_foreign_number_kept(self):
        assert normalize_phone_number("+14155550100") == "+14155550100"

    def test_other_country_code(self):
        assert normalize_phone_number("701234567", country_code="7") == "+7701234567"

    def test_too_short_home_number(self):
        with pytest.raises(InvalidPhoneNumberError, match="Invalid phone number format"):
            normalize_phone_number("+99890123")

    def test_too_long_home_number(self):
        with pytest.raises(InvalidPhoneNumberError):
            normalize_phone_number("+9989012345678")

    def test_digits_without_prefix_get_country_code(self):
        with pytest.raises(InvalidPhoneNumberError):
            normalize_phone_number("12345")

    def test_empty(self):
        with pytest.raises(InvalidPhoneNumberError, match="required"):
            normalize_phone_number("   ")

    def test_is_a_value_error(self):
        assert issubclass(InvalidPhoneNumberError, ValueError)
