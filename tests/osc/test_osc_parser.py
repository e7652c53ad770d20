import random
import struct

import pytest

from osc_bridge.osc import OSCMessage, decode_message, decode_bundle, decode_packet, encode_message
from osc_bridge.osc.parser import _read_string


def osc_string(s):
    """Pack a string in OSC format (null-terminated, 4-byte aligned)."""
    s_bytes = s.encode('utf-8') + b'\x00'
    padding = (4 - len(s_bytes) % 4) % 4
    return s_bytes + (b'\x00' * padding)


def bundle(*elements):
    """Pack elements into an OSC bundle with an 'immediately' time tag."""
    data = b'#bundle\x00' + struct.pack('>II', 0, 1)
    for element in elements:
        data += struct.pack('>i', len(element)) + element
    return data


# --- decode_message ---

def test_decode_float_message():
    """
    Test decoding /fractal/zoom with a single float argument.
    """
    data = osc_string("/fractal/zoom") + osc_string(",f") + struct.pack('>f', 2.5)
    assert decode_message(data) == OSCMessage("/fractal/zoom", (2.5,))


def test_decode_too_short_buffer():
    """
    Test that a 2-byte buffer yields an empty message instead of raising.
    """
    assert decode_message(bytes([0x00, 0x00])) == OSCMessage("", ())


def test_decode_empty_buffer():
    assert decode_message(b"") == OSCMessage("", ())


def test_decode_address_without_terminator():
    """
    Test that an address with no zero byte is unparseable.
    """
    assert decode_message(b"/fractal/zoom") == OSCMessage("", ())


def test_decode_address_only():
    """
    Test that a message with no type tag string has no arguments.
    """
    assert decode_message(b"/a\x00\x00") == OSCMessage("/a", ())


def test_decode_address_followed_by_non_tag_byte():
    """
    Test that bytes after the address that don't start with ',' are ignored.
    """
    data = osc_string("/fractal/reset") + b"xyz\x00"
    assert decode_message(data) == OSCMessage("/fractal/reset", ())


def test_decode_type_tags_without_terminator():
    """
    Test that an unterminated type tag string yields the address only.
    """
    data = osc_string("/a") + b",iii"
    assert decode_message(data) == OSCMessage("/a", ())


def test_decode_empty_type_tags():
    data = osc_string("/a") + osc_string(",")
    assert decode_message(data) == OSCMessage("/a", ())


def test_decode_all_supported_types():
    """
    Test decoding every supported type tag in one message.
    """
    data = (
        osc_string("/t")
        + osc_string(",ifsdTFNh")
        + struct.pack('>i', -7)
        + struct.pack('>f', 1.5)
        + osc_string("hi")
        + struct.pack('>d', 3.25)
        + struct.pack('>q', 2 ** 40)
    )
    msg = decode_message(data)
    assert msg.address == "/t"
    assert msg.args == (-7, 1.5, "hi", 3.25, True, False, None, 2 ** 40)
    assert isinstance(msg.args[0], int)
    assert isinstance(msg.args[7], int)


def test_decode_int64_is_signed():
    data = osc_string("/h") + osc_string(",h") + struct.pack('>q', -(2 ** 62))
    assert decode_message(data).args == (-(2 ** 62),)


def test_decode_truncated_argument_keeps_prefix():
    """
    Test that a declared argument with too few bytes stops decoding.
    """
    data = osc_string("/b") + osc_string(",ii") + struct.pack('>i', 1) + b"\x00\x00"
    assert decode_message(data) == OSCMessage("/b", (1,))


def test_decode_truncated_double_keeps_prefix():
    data = osc_string("/b") + osc_string(",fd") + struct.pack('>f', 0.5) + b"\x00" * 4
    assert decode_message(data) == OSCMessage("/b", (0.5,))


def test_decode_unterminated_string_argument():
    """
    Test that a string argument without a terminator stops decoding.
    """
    data = osc_string("/s") + osc_string(",is") + struct.pack('>i', 3) + b"abc"
    assert decode_message(data) == OSCMessage("/s", (3,))


def test_decode_unknown_tag_stops_argument_parsing():
    """
    Test that an unknown tag ends argument parsing for the rest of the message.
    """
    data = (
        osc_string("/u")
        + osc_string(",ibi")
        + struct.pack('>i', 1)
        + struct.pack('>i', 4) + b"\x01\x02\x03\x04"
        + struct.pack('>i', 2)
    )
    assert decode_message(data) == OSCMessage("/u", (1,))


def test_decode_invalid_utf8_does_not_raise():
    data = b"/\xff\xfe\x00" + osc_string(",s") + b"\xc3\x28\x00\x00"
    msg = decode_message(data)
    assert msg.address.startswith("/")
    assert len(msg.args) == 1


def test_decode_accepts_bytearray_and_memoryview():
    data = encode_message("/x", [1, "y"])
    assert decode_message(bytearray(data)) == OSCMessage("/x", (1, "y"))
    assert decode_message(memoryview(data)) == OSCMessage("/x", (1, "y"))


@pytest.mark.parametrize("text", ["", "a", "ab", "abc", "abcd", "abcde", "/fractal/zoom"])
def test_string_padding_lands_past_terminator(text):
    """
    Test that the cursor after a string is 4-byte aligned and past its terminator.
    """
    data = osc_string(text) + b"\xff" * 8
    value, offset = _read_string(data, 0)
    assert value == text
    assert offset % 4 == 0
    assert offset > len(text.encode('utf-8'))


# --- decode_bundle ---

def test_decode_bundle_two_messages():
    """
    Test the bundle example: /a with no args followed by /b i 7.
    """
    data = bundle(encode_message("/a"), encode_message("/b", [7]))
    assert decode_bundle(data) == [OSCMessage("/a", ()), OSCMessage("/b", (7,))]


def test_decode_nested_bundles_flatten_in_order():
    """
    Test that nested bundles flatten depth-first, left to right.
    """
    m1, m2, m3, m4 = (encode_message(f"/m{i}", [i]) for i in range(1, 5))
    data = bundle(m1, bundle(m2, bundle(m3)), m4)
    addresses = [msg.address for msg in decode_bundle(data)]
    assert addresses == ["/m1", "/m2", "/m3", "/m4"]


def test_decode_bundle_short_buffer():
    assert decode_bundle(b"#bundle") == []
    assert decode_bundle(b"") == []


def test_decode_bundle_plain_message():
    """
    Test that a non-bundle packet decodes as a single message.
    """
    assert decode_bundle(encode_message("/solo", [1.5])) == [OSCMessage("/solo", (1.5,))]


def test_decode_bundle_plain_garbage_is_dropped():
    assert decode_bundle(b"\x00" * 12) == []


def test_decode_bundle_header_only():
    assert decode_bundle(bundle()) == []
    assert decode_bundle(b"#bundle\x00\x00\x00\x00\x00") == []


def test_decode_bundle_overrunning_size_keeps_prefix():
    """
    Test that an element size past the end stops the walk but keeps earlier messages.
    """
    data = bundle(encode_message("/ok")) + struct.pack('>i', 64) + encode_message("/cut")
    assert decode_bundle(data) == [OSCMessage("/ok", ())]


@pytest.mark.parametrize("size", [0, -4])
def test_decode_bundle_non_positive_size_stops(size):
    data = bundle(encode_message("/ok")) + struct.pack('>i', size) + encode_message("/never")
    assert decode_bundle(data) == [OSCMessage("/ok", ())]


def test_decode_bundle_truncated_size_field():
    data = bundle(encode_message("/ok")) + b"\x00\x00"
    assert decode_bundle(data) == [OSCMessage("/ok", ())]


def test_decode_bundle_drops_unparseable_elements():
    data = bundle(b"\x00\x00\x00\x00", encode_message("/kept", ["x"]))
    assert decode_bundle(data) == [OSCMessage("/kept", ("x",))]


def test_decode_packet_is_bundle_entry_point():
    data = bundle(encode_message("/a"), encode_message("/b", [7]))
    assert decode_packet(data) == decode_bundle(data)


def test_decoders_never_raise_on_truncation():
    """
    Test every prefix of a valid nested bundle decodes without raising.
    """
    data = bundle(
        encode_message("/fractal/zoom", [2.5]),
        bundle(encode_message("/fractal/type", [3]), encode_message("/fractal/name", ["newton"])),
    )
    for end in range(len(data) + 1):
        prefix = data[:end]
        decode_message(prefix)
        messages = decode_bundle(prefix)
        assert all(msg.address for msg in messages)
    assert len(decode_bundle(data)) == 3


def test_decoders_never_raise_on_random_input():
    rng = random.Random(616)
    for _ in range(500):
        length = rng.randint(0, 64)
        data = bytes(rng.getrandbits(8) for _ in range(length))
        decode_message(data)
        decode_bundle(data)
        decode_bundle(b"#bundle\x00" + data)
