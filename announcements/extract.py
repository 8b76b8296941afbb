from collections import namedtuple

from ranges.iprange import parse_prefix, split_points

MAX_PATH = 4

RouteRecord = namedtuple('RouteRecord', ['family', 'prefix', 'origins', 'path', 'splits'])


def is_private_asn(asn):
    return 64512 <= asn <= 65534 or 4200000000 <= asn <= 4294967294


def extract(announcement, ignore_private_asn=False):
    """
    Normalize an announcement into a RouteRecord: parsed prefix, filtered origins, the AS path
    truncated to the MAX_PATH hops closest to the origin, and the prefix's split points.

    A record whose origins were all private keeps its split points, but has no origins.
    """
    family, prefix = parse_prefix(announcement.prefix)
    origins = announcement.origins
    path = announcement.path
    if ignore_private_asn:
        origins = {asn for asn in origins if not is_private_asn(asn)}
        path = [asn for asn in path if not is_private_asn(asn)]
    return RouteRecord(family, prefix, frozenset(origins), tuple(path[-MAX_PATH:]), split_points(family, prefix))
