"""
Single-file attribution by set subtraction.

Every prefix announced by a target ASN is included, every other prefix is excluded. Each included
prefix has the excluded prefixes overlapping it subtracted on its own, and only the results are
unioned. Excludes are never unioned with each other first: merging them could cover address space
between them that no exclude actually announces.
"""
import logging
from bisect import bisect_left
from collections import Counter

from collector import read_records
from ranges.iprange import FAMILIES, Family, IpRangeSet, Prefix, last
from utils.progress import Progress

log = logging.getLogger()


def partition(records, targets):
    """
    Split the prefixes of the records into (included, excluded) membership sets per family.
    A prefix announced by both a target and another ASN stays included.
    """
    targets = set(targets)
    included = {family: set() for family in FAMILIES}
    excluded = {family: set() for family in FAMILIES}
    for record in records:
        if not record.origins:
            continue
        if record.origins & targets:
            included[record.family].add(record.prefix)
        else:
            excluded[record.family].add(record.prefix)
    parts = {}
    for family in FAMILIES:
        both = included[family] & excluded[family]
        if both:
            log.warning('{:,d} {} prefixes are also announced by non-target ASNs, keeping them included'.format(len(both), family))
            excluded[family] -= both
        parts[family] = (included[family], excluded[family])
    return parts


class ExcludeIndex:
    """Excluded prefixes sorted by network, for finding the ones that overlap a prefix."""

    def __init__(self, family: Family, excludes):
        self.family = family
        self.excludes = sorted(excludes)
        self.members = set(self.excludes)

    def __len__(self):
        return len(self.excludes)

    def overlapping(self, prefix: Prefix):
        width = self.family.width
        for prefixlen in range(prefix.prefixlen):
            supernet = Prefix(prefix.network & ~((1 << (width - prefixlen)) - 1), prefixlen)
            if supernet in self.members:
                yield supernet
        end = last(self.family, prefix)
        excludes = self.excludes
        i = bisect_left(excludes, prefix)
        while i < len(excludes) and excludes[i].network <= end:
            yield excludes[i]
            i += 1


def subtract_excludes(family: Family, prefix: Prefix, excludes):
    """The part of prefix left after removing every exclude. Stops as soon as nothing is left."""
    working = IpRangeSet(family, [prefix])
    for exclude in excludes:
        working.remove(exclude)
        if not working:
            break
    return working


def filter_ranges(family: Family, included, excluded, prefilter=True):
    index = ExcludeIndex(family, excluded)
    aggregate = IpRangeSet(family)
    pb = Progress(len(included), 'Filtering {} prefixes'.format(family), increment=10000, callback=lambda: 'Excludes {:,d}'.format(len(index)))
    for prefix in pb.iterator(sorted(included)):
        candidates = index.overlapping(prefix) if prefilter else index.excludes
        aggregate.update(subtract_excludes(family, prefix, candidates))
    return aggregate.simplify()


def filter_records(records, targets, prefilter=True):
    return {family: filter_ranges(family, included, excluded, prefilter=prefilter) for family, (included, excluded) in partition(records, targets).items()}


def filter_file(filename, targets, ignore_private_asn=False, prefilter=True):
    skipped = Counter()
    records = read_records(filename, ignore_private_asn=ignore_private_asn, skipped=skipped)
    ranges = filter_records(records, targets, prefilter=prefilter)
    for reason, n in sorted(skipped.items()):
        log.info('Skipped {:,d} records: {}'.format(n, reason))
    return ranges
