from booker_tools.sanitization import MASK_VALUE, SanitizationConfig, SanitizationParams


def test_sanitize_string_strips_unsafe_characters():
    assert SanitizationConfig.sanitize_string(' "https://x.test/<path>" ') == "https://x.test/path"
    assert SanitizationConfig.sanitize_string("it's\\ok") == "itsok"
    assert SanitizationConfig.sanitize_string(None) == ""


def test_sanitize_data_masks_nested_sensitive_keys():
    data = {
        "user": "bob",
        "Password": "p1",
        "nested": {"accessToken": "t", "keep": 1},
        "items": [{"api_key": "k"}, {"plain": "v"}],
    }

    result = SanitizationConfig.sanitize_data(data)

    assert result == {
        "user": "bob",
        "Password": MASK_VALUE,
        "nested": {"accessToken": MASK_VALUE, "keep": 1},
        "items": [{"api_key": MASK_VALUE}, {"plain": "v"}],
    }
    assert data["Password"] == "p1"


def test_long_strings_truncated_except_protected_keys():
    params = SanitizationParams(max_string_length=5)
    data = {"message": "abcdefgh", "url": "https://long.example.test"}

    result = SanitizationConfig.sanitize_data(data, params)

    assert result["message"] == "abcde..."
    assert result["url"] == "https://long.example.test"


def test_skip_properties_are_dropped():
    params = SanitizationParams(skip_properties=["internal"])
    assert SanitizationConfig.sanitize_data({"internal_id": 1, "id": 2}, params) == {"id": 2}


def test_update_and_reset_defaults():
    SanitizationConfig.update_default_params(mask_value="[hidden]")
    assert SanitizationConfig.sanitize_data({"secret": "x"}) == {"secret": "[hidden]"}

    SanitizationConfig.reset_default_params()
    assert SanitizationConfig.get_default_params().mask_value == MASK_VALUE


def test_redact_headers():
    headers = {"Cookie": "token=abc", "Authorization": "Basic xyz", "Content-Type": "application/json"}

    assert SanitizationConfig.redact_headers(headers) == {
        "Cookie": MASK_VALUE,
        "Authorization": MASK_VALUE,
        "Content-Type": "application/json",
    }
    assert SanitizationConfig.redact_headers(None) == {}


def test_redact_body_does_not_truncate():
    long_value = "x" * 5000
    assert SanitizationConfig.redact_body({"note": long_value, "password": "p"}) == {
        "note": long_value,
        "password": MASK_VALUE,
    }
