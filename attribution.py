import logging

from ranges.iprange import FAMILIES, Family, InvalidBoundaryError, IpRangeSet, interval_to_cidrs
from upstream import augment
from utils.progress import Progress

log = logging.getLogger()


class AttributionMap(dict):
    """ASN -> IpRangeSet for one address family. Unknown ASNs read as an empty set."""

    def __init__(self, family: Family, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.family = family

    def __missing__(self, asn):
        return IpRangeSet(self.family)

    def credit(self, asn, blocks):
        rs = self.get(asn)
        if rs is None:
            rs = self[asn] = IpRangeSet(self.family)
        for prefix in blocks:
            rs.add(prefix)

    def simplify(self):
        for rs in self.values():
            rs.simplify()
        return self

    def ranges(self, asns):
        """Union of the ranges of every ASN in asns."""
        rs = IpRangeSet(self.family)
        for asn in asns:
            if asn in self:
                rs.update(self[asn])
        return rs.simplify()


def attribute(family: Family, table, splits):
    """
    Credit every interval between consecutive split points to the ASNs of the most specific
    prefix covering its first address. Intervals without a covering prefix are dropped.
    """
    amap = AttributionMap(family)
    pb = Progress(max(len(splits) - 1, 0), 'Attributing {} intervals'.format(family), increment=100000, callback=lambda: 'ASNs {:,d}'.format(len(amap)))
    for start, end in pb.iterator(zip(splits, splits[1:])):
        if start >= end:
            raise InvalidBoundaryError('Split points out of order: {} >= {}'.format(family.address(start), end))
        asns = table.lookup(start)
        if asns:
            blocks = interval_to_cidrs(family, start, end)
            for asn in asns:
                amap.credit(asn, blocks)
    return amap.simplify()


def build_asn_ranges(collector):
    """Attribution maps for both families from a merged Collector, with shared upstreams credited."""
    ranges = {}
    for family in FAMILIES:
        collection = collector[family]
        table = collection.routing_table(augment(collection))
        ranges[family] = attribute(family, table, collection.sorted_splits())
        log.info('{}: {:,d} prefixes attributed to {:,d} ASNs'.format(family, len(collection), len(ranges[family])))
    return ranges
