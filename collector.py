import logging
from collections import Counter, defaultdict
from functools import partial
from multiprocessing.pool import Pool

from announcements.extract import extract
from announcements.ribs import RIB, parse_line
from bgp.routing_table import RoutingTable
from ranges.iprange import FAMILIES, Family, InvalidBoundaryError
from utils.progress import Progress

log = logging.getLogger()


def skip(skipped: Counter, reason, detail):
    skipped[reason] += 1
    log.debug('Skipping record ({}): {}'.format(reason, detail))


def to_record(announcement, skipped: Counter, ignore_private_asn=False):
    try:
        return extract(announcement, ignore_private_asn=ignore_private_asn)
    except InvalidBoundaryError as e:
        skip(skipped, 'invalid-boundary', e)
    except ValueError as e:
        skip(skipped, 'malformed', e)
    return None


def read_records(filename, ignore_private_asn=False, skipped=None):
    """RouteRecords of every announcement in a RIB file. Malformed lines are counted in skipped and dropped."""
    if skipped is None:
        skipped = Counter()
    with RIB(filename) as f:
        for line in f:
            try:
                announcement = parse_line(line)
            except ValueError as e:
                skip(skipped, 'malformed', '{} in {!r}'.format(e, line.strip()))
                continue
            if announcement is not None:
                record = to_record(announcement, skipped, ignore_private_asn=ignore_private_asn)
                if record is not None:
                    yield record


class FamilyCollection:
    """Prefixes, AS paths and split points of one address family."""

    def __init__(self, family: Family):
        self.family = family
        self.origins = defaultdict(set)
        self.paths = defaultdict(list)
        self.splits = set()

    def __len__(self):
        return len(self.origins)

    def add(self, record):
        self.splits.update(record.splits)
        if not record.origins:
            return
        self.origins[record.prefix].update(record.origins)
        if record.path:
            for asn in record.origins:
                self.paths[record.prefix, asn].append(record.path)

    def update(self, other):
        if other.family != self.family:
            raise ValueError('Cannot merge {} into {}'.format(other.family, self.family))
        for prefix, asns in other.origins.items():
            self.origins[prefix].update(asns)
        for key, paths in other.paths.items():
            self.paths[key].extend(paths)
        self.splits.update(other.splits)

    def routing_table(self, prefixes=None):
        return RoutingTable.from_prefixes(self.family, self.origins if prefixes is None else prefixes)

    def sorted_splits(self):
        return sorted(self.splits)


class Collector:
    def __init__(self):
        self.families = {family: FamilyCollection(family) for family in FAMILIES}
        self.skipped = Counter()
        self.records = 0

    def __getitem__(self, family):
        return self.families[family]

    def num_prefixes(self):
        return sum(len(collection) for collection in self.families.values())

    def add(self, record):
        self.records += 1
        if not record.origins:
            skip(self.skipped, 'no-origin', record)
        elif not record.path:
            skip(self.skipped, 'empty-path', record)
        self.families[record.family].add(record)

    def add_announcement(self, announcement, ignore_private_asn=False):
        record = to_record(announcement, self.skipped, ignore_private_asn=ignore_private_asn)
        if record is not None:
            self.add(record)
        return record

    def update(self, other):
        for family, collection in self.families.items():
            collection.update(other.families[family])
        self.skipped.update(other.skipped)
        self.records += other.records
        return self


def parse_file(filename, ignore_private_asn=False):
    collector = Collector()
    for record in read_records(filename, ignore_private_asn=ignore_private_asn, skipped=collector.skipped):
        collector.add(record)
    log.debug('{}: {:,d} records, {:,d} prefixes'.format(filename, collector.records, collector.num_prefixes()))
    return collector


def merge(collectors):
    merged = Collector()
    for collector in collectors:
        merged.update(collector)
    return merged


def parse_files(files, poolsize=-1, ignore_private_asn=False):
    """
    Parse every file into its own Collector and merge them as they finish.
    A negative poolsize parses sequentially, 0 uses one process per CPU.
    """
    collector = Collector()
    func = partial(parse_file, ignore_private_asn=ignore_private_asn)
    pb = Progress(len(files), 'Parsing RIBs', callback=lambda: 'Prefixes {:,d}'.format(collector.num_prefixes()))
    if poolsize >= 0:
        with Pool(poolsize or None) as pool:
            for result in pb.iterator(pool.imap_unordered(func, files)):
                collector.update(result)
    else:
        for result in pb.iterator(map(func, files)):
            collector.update(result)
    log.info('Parsed {:,d} records from {:,d} files'.format(collector.records, len(files)))
    for reason, n in sorted(collector.skipped.items()):
        log.info('Skipped {:,d} records: {}'.format(n, reason))
    return collector
