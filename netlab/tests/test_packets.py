import unittest

from netlab.packets import Packet, PacketType


class TestPackets(unittest.TestCase):
    def test_arp_request_is_broadcast(self):
        pkt = Packet.create_arp_request("pkt-1", "02:00:00:00:00:01", "10.0.0.1", "10.0.0.2")
        self.assertTrue(pkt.is_broadcast())
        self.assertEqual(pkt.destination_mac, "ff:ff:ff:ff:ff:ff")
        self.assertEqual(pkt.payload, "Who has 10.0.0.2? Tell 10.0.0.1")

    def test_ping_is_unicast(self):
        pkt = Packet.create_ping("pkt-1", "02:00:00:00:00:01", "02:00:00:00:00:02", "10.0.0.1", "10.0.0.2", 3)
        self.assertFalse(pkt.is_broadcast())
        self.assertEqual(pkt.ttl, 64)
        self.assertEqual(pkt.sequence_number, 3)

    def test_decrement_ttl(self):
        pkt = Packet.create_ping("pkt-1", "a", "b", "10.0.0.1", "10.0.0.2")
        self.assertEqual(pkt.decrement_ttl().ttl, 63)
        self.assertEqual(pkt.ttl, 64)

        last_hop = Packet("pkt-2", PacketType.DATA, "a", "b", ttl=1)
        self.assertIsNone(last_hop.decrement_ttl())

    def test_to_dict_uses_plain_values(self):
        data = Packet.create_arp_reply("pkt-9", "a", "b", "10.0.0.2", "10.0.0.1").to_dict()
        self.assertEqual(data["type"], "ARP_REPLY")
        self.assertEqual(data["payload"], "10.0.0.2 is at a")


if __name__ == "__main__":
    unittest.main()
