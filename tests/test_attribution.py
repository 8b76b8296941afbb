import unittest

from attribution import AttributionMap, attribute, build_asn_ranges
from bgp.routing_table import RoutingTable
from ranges.iprange import IPV4, IPV6, InvalidBoundaryError, IpRangeSet, parse_prefix
from test_collector import collect
from upstream import augment, common_suffix, shared_upstreams


def pfx(text):
    return parse_prefix(text)[1]


def addr(text):
    return pfx(text).network


def strs(family, rs):
    return [family.format(p) for p in rs]


class TestCommonSuffix(unittest.TestCase):

    def test_single_path(self):
        self.assertEqual(common_suffix([(3356, 174, 1)]), (3356, 174, 1))

    def test_no_paths(self):
        self.assertEqual(common_suffix([]), ())

    def test_agreement(self):
        self.assertEqual(common_suffix([(3356, 174, 1), (6939, 174, 1), (174, 1)]), (174, 1))

    def test_disagreement(self):
        self.assertEqual(common_suffix([(3356, 1), (174, 2)]), ())

    def test_limit(self):
        self.assertEqual(common_suffix([(1, 2, 3, 4, 5, 6)]), (3, 4, 5, 6))
        self.assertEqual(common_suffix([(1, 2, 3, 4, 5, 6), (9, 2, 3, 4, 5, 6)], limit=2), (5, 6))


class TestUpstreams(unittest.TestCase):

    def test_shared_upstreams(self):
        collection = collect([('10.0.0.0/24', '3356 174 1'), ('10.0.0.0/24', '6939 174 1'), ('10.0.1.0/24', '3356 1'), ('10.0.1.0/24', '6939 1')])[IPV4]
        upstreams = shared_upstreams(collection.origins, collection.paths)
        self.assertEqual(upstreams, {pfx('10.0.0.0/24'): {174}})

    def test_augment_does_not_modify(self):
        collection = collect([('10.0.0.0/24', '3356 174 1')])[IPV4]
        prefixes = augment(collection)
        self.assertEqual(prefixes, {pfx('10.0.0.0/24'): {1, 174, 3356}})
        self.assertEqual(collection.origins[pfx('10.0.0.0/24')], {1})


class TestRoutingTable(unittest.TestCase):

    def test_longest_match(self):
        rt = RoutingTable.from_prefixes(IPV4, {pfx('10.0.0.0/8'): {1}, pfx('10.1.0.0/16'): {2}})
        self.assertEqual(rt.lookup(addr('10.1.2.3')), {2})
        self.assertEqual(rt.lookup(addr('10.2.0.0')), {1})
        self.assertIsNone(rt.lookup(addr('11.0.0.0')))
        self.assertEqual(rt[addr('10.0.0.0')], {1})
        with self.assertRaises(KeyError):
            rt[addr('192.0.2.1')]

    def test_ipv6(self):
        rt = RoutingTable.from_prefixes(IPV6, {pfx('2001:db8::/32'): {1}})
        self.assertEqual(rt.lookup(addr('2001:db8::1')), {1})
        self.assertIsNone(rt.lookup(addr('2001:db9::')))

    def test_merges_asns(self):
        rt = RoutingTable(IPV4)
        rt.add_prefix(pfx('10.0.0.0/8'), {1})
        rt.add_prefix(pfx('10.0.0.0/8'), {2})
        self.assertEqual(rt.lookup(addr('10.0.0.1')), {1, 2})


class TestAttribute(unittest.TestCase):

    def test_more_specific_wins(self):
        collector = collect([('10.0.0.0/24', '1'), ('10.0.1.0/24', '1'), ('10.0.0.128/25', '2')])
        amap = build_asn_ranges(collector)[IPV4]
        self.assertEqual(strs(IPV4, amap[1]), ['10.0.0.0/25', '10.0.1.0/24'])
        self.assertEqual(strs(IPV4, amap[2]), ['10.0.0.128/25'])
        self.assertEqual(strs(IPV4, amap.ranges([1, 2])), ['10.0.0.0/23'])

    def test_upstream_credit(self):
        collector = collect([('10.0.0.0/24', '3356 1'), ('10.0.1.0/24', '3356 1'), ('10.0.0.128/25', '3356 2')])
        amap = build_asn_ranges(collector)[IPV4]
        self.assertEqual(strs(IPV4, amap[3356]), ['10.0.0.0/23'])
        self.assertEqual(strs(IPV4, amap[1]), ['10.0.0.0/25', '10.0.1.0/24'])

    def test_gaps_are_not_attributed(self):
        collector = collect([('10.0.0.0/24', '1'), ('10.0.2.0/24', '1')])
        amap = build_asn_ranges(collector)[IPV4]
        self.assertEqual(strs(IPV4, amap[1]), ['10.0.0.0/24', '10.0.2.0/24'])
        self.assertNotIn(addr('10.0.1.0'), amap[1])

    def test_private_origin_falls_to_covering_prefix(self):
        collector = collect([('10.0.0.0/16', '1'), ('10.0.2.0/24', '64512')], ignore_private_asn=True)
        amap = build_asn_ranges(collector)[IPV4]
        self.assertEqual(strs(IPV4, amap[1]), ['10.0.0.0/16'])
        self.assertNotIn(64512, amap)

    def test_private_origin_without_covering_prefix(self):
        collector = collect([('10.0.0.0/24', '1'), ('10.0.2.0/24', '64512')], ignore_private_asn=True)
        amap = build_asn_ranges(collector)[IPV4]
        self.assertEqual(strs(IPV4, amap[1]), ['10.0.0.0/24'])
        self.assertEqual(sorted(amap), [1])

    def test_default_route_and_top_of_space(self):
        collector = collect([('0.0.0.0/0', '1'), ('255.255.255.0/24', '2'), ('::/0', '3')])
        ranges = build_asn_ranges(collector)
        self.assertEqual(strs(IPV4, ranges[IPV4][2]), ['255.255.255.0/24'])
        self.assertEqual(ranges[IPV4][1].num_addresses(), (1 << 32) - 256)
        self.assertEqual(strs(IPV6, ranges[IPV6][3]), ['::/0'])

    def test_moas(self):
        collector = collect([('10.0.0.0/24', '1'), ('10.0.0.0/24', '2')])
        amap = build_asn_ranges(collector)[IPV4]
        self.assertEqual(amap[1], amap[2])

    def test_unknown_asn(self):
        amap = AttributionMap(IPV4)
        self.assertEqual(list(amap[12345]), [])
        self.assertNotIn(12345, amap)
        self.assertEqual(amap.ranges([12345]), IpRangeSet(IPV4))

    def test_out_of_order_splits(self):
        rt = RoutingTable.from_prefixes(IPV4, {pfx('10.0.0.0/24'): {1}})
        with self.assertRaises(InvalidBoundaryError):
            attribute(IPV4, rt, [addr('10.0.1.0'), addr('10.0.0.0')])
