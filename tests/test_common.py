from chatgate.common import (
    CODE_PREFIX,
    USER_TOKEN_PREFIX,
    ApplyInfo,
    ErrorCode,
    UserInfo,
    code_key,
    token_key,
)

WIRE_VALUES = [0] + list(range(1001, 1012))


def test_token_key_uses_token_prefix():
    assert token_key(42) == USER_TOKEN_PREFIX + "42"
    assert token_key(7).startswith("utoken_")


def test_code_key_uses_code_prefix():
    email = "someone@example.com"
    assert code_key(email) == "code_" + email
    assert code_key(email)[len(CODE_PREFIX):] == email


def test_error_code_lookup_from_wire_value():
    assert ErrorCode(int("1001")) is ErrorCode.ERROR_JSON
    assert ErrorCode(1011) is ErrorCode.UID_INVALID


def test_only_success_is_falsy():
    assert not ErrorCode(0)
    assert ErrorCode(0) is ErrorCode.SUCCESS
    assert all(ErrorCode(value) for value in range(1001, 1012))


def test_error_codes_are_distinct():
    codes = {ErrorCode(value) for value in WIRE_VALUES}
    assert len(codes) == len(WIRE_VALUES)
    assert [int(ErrorCode(value)) for value in WIRE_VALUES] == WIRE_VALUES


def test_user_info_defaults():
    info = UserInfo()
    assert info.uid == 0
    assert info.sex == 0
    assert (info.name, info.email, info.nick) == ("", "", "")


def test_apply_info_keeps_fields():
    info = ApplyInfo(uid=3, name="bob", desc="hi", icon="i.png", nick="b", sex=1, status=0)
    assert info.uid == 3
    assert info.name == "bob"
    assert info.status == 0