import unittest

from netlab.addressing import (
    are_in_same_subnet,
    get_subnet,
    is_valid_ip,
    mask_to_prefix_length,
    network_prefix,
)


class TestSubnetArithmetic(unittest.TestCase):
    def test_get_subnet_class_c(self):
        self.assertEqual(get_subnet("192.168.1.100", "255.255.255.0"), "192.168.1.0")

    def test_get_subnet_slash_26(self):
        self.assertEqual(get_subnet("10.0.0.77", "255.255.255.192"), "10.0.0.64")

    def test_same_subnet(self):
        self.assertTrue(are_in_same_subnet("192.168.1.10", "192.168.1.20", "255.255.255.0"))

    def test_different_subnets(self):
        self.assertFalse(are_in_same_subnet("192.168.1.10", "192.168.2.10", "255.255.255.0"))

    def test_wider_mask_joins_subnets(self):
        self.assertTrue(are_in_same_subnet("192.168.1.10", "192.168.2.10", "255.255.0.0"))


class TestMalformedInput(unittest.TestCase):
    def test_half_typed_ip_is_not_same_subnet(self):
        self.assertFalse(are_in_same_subnet("192.168.1", "192.168.1.20"))

    def test_half_typed_ip_is_zero_network(self):
        self.assertEqual(get_subnet("192.168", "255.255.255.0"), "0.0.0.0")

    def test_bad_mask_is_zero_network(self):
        self.assertEqual(get_subnet("192.168.1.5", "255.255"), "0.0.0.0")

    def test_non_numeric_octet_does_not_raise(self):
        self.assertEqual(get_subnet("192.168.x.5", "255.255.255.0"), "192.168.0.0")


class TestValidity(unittest.TestCase):
    def test_valid_addresses(self):
        for ip in ("0.0.0.0", "10.1.2.3", "255.255.255.255"):
            self.assertTrue(is_valid_ip(ip), ip)

    def test_invalid_addresses(self):
        for ip in ("", "10.1.2", "10.1.2.3.4", "256.1.1.1", "10.a.1.1", "10..1.1", "-1.2.3.4", "192.168.1.\u00b2", "\u0661\u0660.0.0.1"):
            self.assertFalse(is_valid_ip(ip), ip)

    def test_prefix_length(self):
        self.assertEqual(mask_to_prefix_length("255.255.255.0"), 24)
        self.assertEqual(mask_to_prefix_length("255.255.240.0"), 20)
        self.assertEqual(mask_to_prefix_length("garbage"), 0)

    def test_network_prefix_defaults_to_slash_24(self):
        self.assertEqual(network_prefix("172.16.5.9"), "172.16.5.0/24")
        self.assertEqual(network_prefix("172.16.5.9", "255.255.0.0"), "172.16.0.0/16")


if __name__ == "__main__":
    unittest.main()
