import pytest

from chatgate.urlcodec import split_target, url_decode, url_encode


def test_encode_space_as_plus():
    assert url_encode("a b") == "a+b"


def test_encode_reserved_uses_uppercase_hex():
    assert url_encode("a/b") == "a%2Fb"


@pytest.mark.parametrize("text", ["key1", "value-1_x.y~z", "Ab09"])
def test_unreserved_pass_through(text):
    assert url_encode(text) == text


@pytest.mark.parametrize(
    "text",
    ["hello world", "a&b=c", "100%", "email@example.com", "中文 测试", "~!*()'"],
)
def test_round_trip(text):
    assert url_decode(url_encode(text)) == text


def test_encoded_output_is_safe():
    encoded = url_encode("a b&c=d/é?")
    assert " " not in encoded
    assert "&" not in encoded
    assert "=" not in encoded


def test_decode_accepts_lowercase_hex():
    assert url_decode("a%2fb") == url_decode("a%2Fb")


@pytest.mark.parametrize("text", ["%4", "%", "abc%G1", "%zz"])
def test_decode_bad_escape_raises(text):
    with pytest.raises(ValueError):
        url_decode(text)


def test_split_target_without_query():
    assert split_target("/get_test") == ("/get_test", {})


def test_split_target_example():
    path, params = split_target("get_test?key1=value1&key2=value2")
    assert path == "get_test"
    assert params == {"key1": "value1", "key2": "value2"}


def test_split_target_decodes_and_skips_pairs_without_equals():
    query = url_encode("a b") + "=" + url_encode("x/y") + "&flag&last=1"
    path, params = split_target("/p?" + query)
    assert path == "/p"
    assert params == {"a b": "x/y", "last": "1"}


def test_split_target_later_key_wins():
    _, params = split_target("/p?k=first&k=second")
    assert params == {"k": "second"}


def test_split_target_value_keeps_extra_equals():
    _, params = split_target("/p?k=a=b")
    assert params == {"k": "a=b"}