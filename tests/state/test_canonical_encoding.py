import pytest

from streamledger.state.canonical import canonical_json_bytes, domain_sep_bytes, hex_to_bytes_allow_0x


def test_key_order_and_whitespace() -> None:
    assert canonical_json_bytes({"b": 1, "a": [2, "x"]}) == b'{"a":[2,"x"],"b":1}'


@pytest.mark.parametrize("value", [1.5, {"a": 0.0}, ["\ud800"], {1: "x"}])
def test_rejects_non_canonical_values(value) -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes(value)


def test_domain_separator() -> None:
    assert domain_sep_bytes("call_sig:main") == b"streamledger:call_sig:main:v1\x00"
    with pytest.raises(ValueError):
        domain_sep_bytes("a\x00b")
    with pytest.raises(ValueError):
        domain_sep_bytes("x", version=0)


def test_hex_parsing() -> None:
    assert hex_to_bytes_allow_0x("0xABcd", name="h") == b"\xab\xcd"
    assert hex_to_bytes_allow_0x("abcd", name="h", expected_nbytes=2) == b"\xab\xcd"
    for bad in ("0x", "abc", "zz", "0xabcd00"):
        with pytest.raises(ValueError):
            hex_to_bytes_allow_0x(bad, name="h", expected_nbytes=2 if bad == "0xabcd00" else None)


def test_error_names_the_offending_path() -> None:
    with pytest.raises(TypeError, match=r"\$\.stream\[1\]"):
        canonical_json_bytes({"stream": [1, 2.5]})


def test_label_must_be_ascii() -> None:
    with pytest.raises(ValueError):
        domain_sep_bytes("café")
