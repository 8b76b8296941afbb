from radix import Radix

from ranges.iprange import Family, Prefix


class RoutingTable(Radix):
    """Longest-prefix-match table of one address family, mapping prefixes to sets of ASNs."""

    @classmethod
    def from_prefixes(cls, family: Family, prefixes):
        rt = cls(family)
        for prefix, asns in prefixes.items():
            rt.add_prefix(prefix, asns)
        return rt

    def __init__(self, family: Family):
        super().__init__()
        self.family = family

    def __getitem__(self, address):
        asns = self.lookup(address)
        if asns is None:
            raise KeyError(self.family.address(address))
        return asns

    def add_prefix(self, prefix: Prefix, asns):
        node = self.add(packed=self.family.packed(prefix.network), masklen=prefix.prefixlen)
        node.data.setdefault('asns', set()).update(asns)
        return node

    def lookup(self, address):
        """ASNs of the most specific prefix covering address, or None."""
        node = self.search_best(packed=self.family.packed(address), masklen=self.family.width)
        if node is None:
            return None
        return node.data['asns']
