from ota_resolver.expiry import extract_expires_timestamp, format_remaining_time
from ota_resolver.labels import get_expired_label

NOW = 1_700_000_000


def _now():
    return NOW


def test_extract_expires_timestamp():
    assert extract_expires_timestamp("https://h/p?a=1&Expires=1700000000") == 1700000000
    assert extract_expires_timestamp("https://h/p?a=1") is None
    assert extract_expires_timestamp("https://h/p") is None
    assert extract_expires_timestamp("https://h/p?Expires=soon") is None
    assert extract_expires_timestamp("http://[::1/p?Expires=1") is None


def test_format_remaining_time_all_units():
    assert format_remaining_time(NOW + 90061, now=_now) == "1:1:1:1"


def test_format_remaining_time_drops_leading_zero_units():
    assert format_remaining_time(NOW + 3661, now=_now) == "1:1:1"
    assert format_remaining_time(NOW + 59, now=_now) == "59"
    assert format_remaining_time(NOW + 3600, now=_now) == "1:0:0"


def test_format_remaining_time_expired():
    assert format_remaining_time(NOW, now=_now, expired_label="gone") == "gone"
    assert format_remaining_time(NOW - 5, now=_now, expired_label="gone") == "gone"
    assert format_remaining_time(NOW - 5, now=_now) == get_expired_label()


def test_expired_label_localization():
    assert get_expired_label() == "Expired"
    assert get_expired_label("zh_CN") == "已过期"
    assert get_expired_label("zh-TW") == "已过期"
    assert get_expired_label("fr") == "Expired"


def test_extract_expires_timestamp_accepts_only_plain_long_values():
    assert extract_expires_timestamp("https://h/p?Expires=-5") == -5
    assert extract_expires_timestamp("https://h/p?Expires=+7") == 7
    assert extract_expires_timestamp("https://h/p?Expires=1_000") is None
    assert extract_expires_timestamp("https://h/p?Expires=%201") is None
    assert extract_expires_timestamp("https://h/p?Expires= 1") is None
    assert extract_expires_timestamp("https://h/p?Expires=١٢") is None
    assert extract_expires_timestamp("https://h/p?Expires=") is None
    assert extract_expires_timestamp("https://h/p?Expires=9223372036854775807") == 2**63 - 1
    assert extract_expires_timestamp("https://h/p?Expires=9223372036854775808") is None
    assert extract_expires_timestamp("https://h/p?Expires=" + "9" * 5000) is None
