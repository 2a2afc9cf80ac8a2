import unittest

from netlab.topology import (
    AlreadyConnectedError,
    Device,
    DeviceType,
    DuplicateIdError,
    NoFreeInterfaceError,
    SameDeviceError,
    Topology,
    UnknownInterfaceError,
)


def _pc(name: str, ip: str = None) -> Device:
    pc = Device.pc(name, device_id=name)
    if ip:
        pc.interfaces[0].configure(ip, "255.255.255.0")
    return pc


class TestDevices(unittest.TestCase):
    def test_port_counts_are_fixed_per_class(self):
        self.assertEqual(len(Device.pc("PC").interfaces), 1)
        self.assertEqual(len(Device.server("SRV").interfaces), 1)
        self.assertEqual(len(Device.router("R1").interfaces), 4)
        self.assertEqual(len(Device.switch("SW1").interfaces), 8)
        self.assertEqual(len(Device.hub("HUB1").interfaces), 4)

    def test_interface_ids_and_names(self):
        sw = Device.switch("SW1", device_id="SW1")
        self.assertEqual(sw.interfaces[0].id, "SW1:port0")
        self.assertEqual(sw.interfaces[7].name, "port7")
        self.assertTrue(all(i.owner_device_id == "SW1" for i in sw.interfaces))

    def test_layer2_classification(self):
        self.assertTrue(Device.switch("SW").is_layer2())
        self.assertTrue(Device.hub("HUB").is_layer2())
        self.assertFalse(Device.router("R").is_layer2())
        self.assertFalse(Device.pc("PC").is_layer2())

    def test_mac_is_assigned_once(self):
        itf = Device.pc("PC1", device_id="PC1").interfaces[0]
        self.assertRegex(itf.mac_address, r"^02(:[0-9a-f]{2}){5}$")
        with self.assertRaises(AttributeError):
            itf.mac_address = "02:00:00:00:00:01"

    def test_primary_interface_is_first_with_ip(self):
        r = Device.router("R1")
        self.assertIsNone(r.primary_interface())
        r.interfaces[2].configure("10.0.0.1", "255.255.255.0")
        self.assertIs(r.primary_interface(), r.interfaces[2])
        self.assertEqual(r.primary_ip(), "10.0.0.1")


class TestTopologyMutation(unittest.TestCase):
    def setUp(self):
        self.topo = Topology(name="Test Network")

    def test_add_device_rejects_duplicate_id(self):
        self.topo.add_device(_pc("PC1"))
        with self.assertRaises(DuplicateIdError):
            self.topo.add_device(_pc("PC1"))
        self.assertEqual(len(self.topo.devices), 1)

    def test_remove_missing_device_is_noop(self):
        self.topo.add_device(_pc("PC1"))
        self.topo.remove_device("nope")
        self.assertEqual(len(self.topo.devices), 1)

    def test_connect_sets_symmetric_peers(self):
        pc1 = self.topo.add_device(_pc("PC1"))
        pc2 = self.topo.add_device(_pc("PC2"))
        link = self.topo.connect(pc1.interfaces[0].id, pc2.interfaces[0].id)

        self.assertEqual(self.topo.links, [link])
        self.assertEqual(pc1.interfaces[0].peer_interface_id, pc2.interfaces[0].id)
        self.assertEqual(pc2.interfaces[0].peer_interface_id, pc1.interfaces[0].id)
        self.assertEqual(self.topo.check_invariants(), [])

    def test_connect_twice_fails(self):
        pc1 = self.topo.add_device(_pc("PC1"))
        pc2 = self.topo.add_device(_pc("PC2"))
        sw = self.topo.add_device(Device.switch("SW1", device_id="SW1"))
        self.topo.connect(pc1.interfaces[0].id, sw.interfaces[0].id)
        with self.assertRaises(AlreadyConnectedError):
            self.topo.connect(pc1.interfaces[0].id, pc2.interfaces[0].id)
        self.assertEqual(len(self.topo.links), 1)

    def test_connect_same_device_fails(self):
        sw = self.topo.add_device(Device.switch("SW1", device_id="SW1"))
        with self.assertRaises(SameDeviceError):
            self.topo.connect(sw.interfaces[0].id, sw.interfaces[1].id)
        self.assertEqual(self.topo.links, [])

    def test_connect_unknown_interface_fails(self):
        pc1 = self.topo.add_device(_pc("PC1"))
        with self.assertRaises(UnknownInterfaceError):
            self.topo.connect(pc1.interfaces[0].id, "ghost:eth0")

    def test_connect_devices_uses_free_ports(self):
        sw = self.topo.add_device(Device.switch("SW1", device_id="SW1"))
        pcs = [self.topo.add_device(_pc(f"PC{i}")) for i in range(3)]
        for pc in pcs:
            self.topo.connect_devices(pc.id, sw.id)
        used = sorted(i.name for i in sw.interfaces if i.is_connected())
        self.assertEqual(used, ["port0", "port1", "port2"])

    def test_connect_devices_without_free_port(self):
        pc1 = self.topo.add_device(_pc("PC1"))
        pc2 = self.topo.add_device(_pc("PC2"))
        pc3 = self.topo.add_device(_pc("PC3"))
        self.topo.connect_devices(pc1.id, pc2.id)
        with self.assertRaises(NoFreeInterfaceError):
            self.topo.connect_devices(pc1.id, pc3.id)

    def test_connect_disconnect_round_trip(self):
        pc1 = self.topo.add_device(_pc("PC1"))
        pc2 = self.topo.add_device(_pc("PC2"))
        ids_before = [(d.id, [i.id for i in d.interfaces]) for d in self.topo.devices]
        macs_before = [i.mac_address for d in self.topo.devices for i in d.interfaces]

        link = self.topo.connect(pc1.interfaces[0].id, pc2.interfaces[0].id)
        self.topo.disconnect(link.id)

        self.assertEqual(self.topo.links, [])
        self.assertIsNone(pc1.interfaces[0].peer_interface_id)
        self.assertIsNone(pc2.interfaces[0].peer_interface_id)
        self.assertEqual([(d.id, [i.id for i in d.interfaces]) for d in self.topo.devices], ids_before)
        self.assertEqual([i.mac_address for d in self.topo.devices for i in d.interfaces], macs_before)

    def test_disconnect_missing_link_is_noop(self):
        self.topo.disconnect("link-none")
        self.assertEqual(self.topo.links, [])

    def test_remove_device_cascades(self):
        sw = self.topo.add_device(Device.switch("SW1", device_id="SW1"))
        pc1 = self.topo.add_device(_pc("PC1"))
        pc2 = self.topo.add_device(_pc("PC2"))
        self.topo.connect_devices(pc1.id, sw.id)
        self.topo.connect_devices(pc2.id, sw.id)

        self.topo.remove_device(sw.id)

        self.assertEqual(self.topo.links, [])

        self.assertIsNone(self.topo.find_device("SW1"))
        sw_ifaces = {i.id for i in sw.interfaces}
        for link in self.topo.links:
            self.assertNotIn(link.interface_a_id, sw_ifaces)
            self.assertNotIn(link.interface_b_id, sw_ifaces)
        self.assertIsNone(pc1.interfaces[0].peer_interface_id)
        self.assertIsNone(pc2.interfaces[0].peer_interface_id)
        self.assertEqual(self.topo.check_invariants(), [])


class TestTopologyQueries(unittest.TestCase):
    def setUp(self):
        self.topo = Topology(name="Queries")
        self.pc1 = self.topo.add_device(_pc("PC1", "192.168.1.10"))
        self.pc2 = self.topo.add_device(_pc("PC2", "192.168.2.10"))
        self.pc3 = self.topo.add_device(_pc("PC3"))
        self.sw = self.topo.add_device(Device.switch("SW1", device_id="SW1"))
        self.topo.connect_devices(self.pc1.id, self.sw.id)
        self.topo.connect_devices(self.pc2.id, self.sw.id)

    def test_find_device(self):
        self.assertIs(self.topo.find_device("PC1"), self.pc1)
        self.assertIsNone(self.topo.find_device("missing"))

    def test_find_device_by_ip(self):
        self.assertIs(self.topo.find_device_by_ip("192.168.2.10"), self.pc2)
        self.assertIsNone(self.topo.find_device_by_ip("10.9.9.9"))

    def test_find_device_by_name_ignores_case(self):
        self.assertIs(self.topo.find_device_by_name("sw1"), self.sw)

    def test_find_interface(self):
        self.assertIs(self.topo.find_interface("PC1:eth0"), self.pc1.interfaces[0])
        self.assertIs(self.sw.interface("port1"), self.sw.interfaces[1])

    def test_links_between(self):
        pairs = self.topo.links_between("SW1", "PC2")
        self.assertEqual([(a.id, b.id) for a, b in pairs], [("SW1:port1", "PC2:eth0")])
        link = self.topo.link_for_interface("PC2:eth0")
        self.assertEqual(link.other_interface_id("PC2:eth0"), "SW1:port1")

    def test_neighbors(self):
        self.assertEqual([d.id for d in self.topo.neighbors("PC1")], ["SW1"])
        self.assertEqual(sorted(d.id for d in self.topo.neighbors("SW1")), ["PC1", "PC2"])
        self.assertEqual(self.topo.neighbors("PC3"), [])

    def test_neighbors_are_deduplicated(self):
        r = self.topo.add_device(Device.router("R1", device_id="R1"))
        self.topo.connect_devices(r.id, self.sw.id)
        self.topo.connect_devices(r.id, self.sw.id)
        self.assertEqual([d.id for d in self.topo.neighbors("R1")], ["SW1"])

    def test_subnets(self):
        self.assertEqual(self.topo.subnets(), {"192.168.1.0/24", "192.168.2.0/24"})

    def test_all_ip_addresses(self):
        self.assertEqual(sorted(self.topo.all_ip_addresses()), ["192.168.1.10", "192.168.2.10"])

    def test_device_count_by_type(self):
        self.assertEqual(self.topo.device_count_by_type(DeviceType.PC), 3)
        self.assertEqual(self.topo.device_count_by_type(DeviceType.SWITCH), 1)
        self.assertEqual(self.topo.device_count_by_type(DeviceType.ROUTER), 0)

    def test_clone_has_fresh_ids_and_same_shape(self):
        copy = self.topo.clone()

        self.assertNotEqual(copy.id, self.topo.id)
        self.assertEqual(len(copy.devices), len(self.topo.devices))
        self.assertEqual(len(copy.links), len(self.topo.links))
        self.assertTrue({d.id for d in copy.devices}.isdisjoint({d.id for d in self.topo.devices}))
        self.assertTrue({l.id for l in copy.links}.isdisjoint({l.id for l in self.topo.links}))
        self.assertEqual(copy.check_invariants(), [])

        c_pc1 = copy.find_device_by_name("PC1")
        c_sw = copy.find_device_by_name("SW1")
        self.assertEqual(c_pc1.primary_ip(), "192.168.1.10")
        self.assertEqual([d.id for d in copy.neighbors(c_pc1.id)], [c_sw.id])

    def test_clone_is_independent(self):
        copy = self.topo.clone()
        copy.remove_device(copy.find_device_by_name("SW1").id)
        self.assertEqual(len(self.topo.links), 2)
        self.assertEqual(len(self.topo.neighbors("SW1")), 2)


class TestInvariantChecks(unittest.TestCase):
    def test_asymmetric_peer_is_reported(self):
        topo = Topology()
        pc1 = topo.add_device(_pc("PC1"))
        pc2 = topo.add_device(_pc("PC2"))
        pc1.interfaces[0].peer_interface_id = pc2.interfaces[0].id
        problems = topo.check_invariants()
        self.assertTrue(any("not symmetric" in p for p in problems))


if __name__ == "__main__":
    unittest.main()
