"""
Packet codec unit tests.
"""

import struct
import unittest
from unittest import mock

from rcon_cli import packet
from rcon_cli.errors import MalformedPacket, RequestEncodingError, SizeOverflow
from rcon_cli.packet import Packet, PacketType, decode, encode


class TestEncode(unittest.TestCase):

    def test_wire_layout(self):
        """Header is little-endian and the body ends with two NUL bytes"""
        data = encode(PacketType.COMMAND, 7, "list")
        self.assertEqual(data, struct.pack("<iii", 14, 7, 2) + b"list\x00\x00")
        self.assertEqual(len(data), 14 + 4)

    def test_empty_body(self):
        data = encode(PacketType.RESPONSE, -5, "")
        self.assertEqual(data, struct.pack("<iii", 10, -5, 0) + b"\x00\x00")

    def test_text_is_utf8(self):
        data = encode(PacketType.COMMAND, 1, "say héllo")
        self.assertIn("say héllo".encode("utf-8"), data)
        (size,) = struct.unpack_from("<i", data)
        self.assertEqual(size, len("say héllo".encode("utf-8")) + 10)

    def test_size_overflow(self):
        with mock.patch.object(packet, "MAX_PACKET_SIZE", 20):
            encode(PacketType.COMMAND, 1, "x" * 10)
            with self.assertRaises(SizeOverflow):
                encode(PacketType.COMMAND, 1, "x" * 11)

    def test_text_without_utf8_form(self):
        """Lone surrogates (undecodable argv bytes) are rejected before sending"""
        with self.assertRaises(RequestEncodingError):
            encode(PacketType.COMMAND, 1, "say \udcff")

    def test_rejects_invalid_type_and_id(self):
        with self.assertRaises(ValueError):
            encode(PacketType.INVALID, 1, "")
        with self.assertRaises(ValueError):
            encode(PacketType.COMMAND, 2**31, "")

    def test_packet_encode_matches_function(self):
        p = Packet(id=3, type=PacketType.LOGIN, body=b"secret")
        self.assertEqual(p.size, 16)
        self.assertEqual(p.encode(), encode(PacketType.LOGIN, 3, "secret"))


class TestDecode(unittest.TestCase):

    def test_round_trip(self):
        cases = [
            (PacketType.RESPONSE, 0, b""),
            (PacketType.COMMAND, 2**31 - 1, b"time query daytime"),
            (PacketType.LOGIN, -(2**31), b"pw"),
            (PacketType.RESPONSE, -1, "§aColored".encode("utf-8")),
        ]
        for packet_type, packet_id, body in cases:
            with self.subTest(packet_type=packet_type, packet_id=packet_id):
                buf = bytearray(encode(packet_type, packet_id, body))
                p = decode(buf)
                self.assertEqual((p.type, p.id, p.body), (packet_type, packet_id, body))
                self.assertEqual(p.size, len(body) + 10)
                self.assertEqual(buf, bytearray())

    def test_prefix_is_incomplete(self):
        """Any strict prefix decodes to nothing and leaves the buffer alone"""
        data = encode(PacketType.RESPONSE, 42, "3 players")
        for cut in range(len(data)):
            with self.subTest(cut=cut):
                buf = bytearray(data[:cut])
                self.assertIsNone(decode(buf))
                self.assertEqual(buf, bytearray(data[:cut]))

    def test_back_to_back_packets(self):
        buf = bytearray(encode(PacketType.RESPONSE, 1, "foo") + encode(PacketType.RESPONSE, 2, "bar"))
        first = decode(buf)
        second = decode(buf)
        self.assertEqual((first.id, first.body), (1, b"foo"))
        self.assertEqual((second.id, second.body), (2, b"bar"))
        self.assertEqual(len(buf), 0)
        self.assertIsNone(decode(buf))

    def test_trailing_partial_packet_is_kept(self):
        second = encode(PacketType.RESPONSE, 2, "bar")
        buf = bytearray(encode(PacketType.RESPONSE, 1, "foo") + second[:7])
        self.assertEqual(decode(buf).body, b"foo")
        self.assertIsNone(decode(buf))
        self.assertEqual(buf, bytearray(second[:7]))

    def test_malformed_size(self):
        """A declared size below 10 is a protocol violation, not a short read"""
        for size in (5, 9, 0, -1):
            with self.subTest(size=size):
                buf = bytearray(struct.pack("<iii", size, 1, 0) + b"\x00\x00")
                before = bytes(buf)
                with self.assertRaises(MalformedPacket):
                    decode(buf)
                self.assertEqual(bytes(buf), before)

    def test_malformed_size_detected_from_size_field_alone(self):
        with self.assertRaises(MalformedPacket):
            decode(bytearray(struct.pack("<i", 5)))

    def test_unknown_type_is_invalid(self):
        for raw in (1, 4, -2, 99):
            with self.subTest(raw=raw):
                buf = bytearray(struct.pack("<iii", 12, 9, raw) + b"ok\x00\x00")
                p = decode(buf)
                self.assertIs(p.type, PacketType.INVALID)
                self.assertEqual(p.body, b"ok")

    def test_terminator_not_validated(self):
        buf = bytearray(struct.pack("<iii", 12, 9, 0) + b"okXY")
        self.assertEqual(decode(buf).body, b"ok")


if __name__ == '__main__':
    unittest.main(verbosity=2)
