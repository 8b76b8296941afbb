from collections import defaultdict

from announcements.extract import MAX_PATH


def common_suffix(paths, limit=MAX_PATH):
    """
    Longest common suffix of the AS paths, read from the origin end and capped at limit ASNs.
    A single path is its own suffix.
    """
    paths = iter(paths)
    try:
        suffix = list(reversed(next(paths)))[:limit]
    except StopIteration:
        return ()
    for path in paths:
        common_len = 0
        while common_len < len(suffix) and common_len < len(path):
            if suffix[common_len] == path[-common_len - 1]:
                common_len += 1
            else:
                break
        del suffix[common_len:]
        if not suffix:
            break
    return tuple(reversed(suffix))


def shared_upstreams(origins, paths, limit=MAX_PATH):
    """ASNs in the common path suffix of each prefix, excluding the prefix's own origins."""
    byprefix = defaultdict(list)
    for (prefix, _), prefix_paths in paths.items():
        byprefix[prefix].extend(prefix_paths)
    upstreams = {}
    for prefix, prefix_paths in byprefix.items():
        asns = set(common_suffix(prefix_paths, limit=limit)) - origins.get(prefix, set())
        if asns:
            upstreams[prefix] = asns
    return upstreams


def augment(collection, limit=MAX_PATH):
    """A copy of the collection's prefix map with each prefix's shared upstream ASNs added to its origins."""
    prefixes = {prefix: set(asns) for prefix, asns in collection.origins.items()}
    for prefix, asns in shared_upstreams(collection.origins, collection.paths, limit=limit).items():
        prefixes[prefix].update(asns)
    return prefixes
