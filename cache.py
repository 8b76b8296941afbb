import hashlib
import json
import logging
import pickle
from collections import namedtuple

from ranges.iprange import FAMILIES
from utils.utils import load_pickle, save_pickle

log = logging.getLogger()

CachedRanges = namedtuple('CachedRanges', ['key', 'ranges'])


def fingerprint(files, ignore_private_asn):
    key = json.dumps([sorted(files), bool(ignore_private_asn)])
    return hashlib.sha256(key.encode()).hexdigest()


def load_cache(filename, files, ignore_private_asn):
    """Cached attribution maps for these inputs, or None when there is no usable cache."""
    try:
        cached = load_pickle(filename)
    except FileNotFoundError:
        log.info('No cache at {}'.format(filename))
        return None
    except (OSError, EOFError, pickle.UnpicklingError, AttributeError, ImportError, IndexError, TypeError, ValueError) as e:
        log.warning('Ignoring unreadable cache {}: {}'.format(filename, e))
        return None
    if not isinstance(cached, CachedRanges) or not isinstance(cached.ranges, dict) or set(cached.ranges) != set(FAMILIES):
        log.warning('Ignoring malformed cache {}'.format(filename))
        return None
    if cached.key != fingerprint(files, ignore_private_asn):
        log.info('Cache {} was built from different inputs'.format(filename))
        return None
    log.info('Loaded ranges from cache {}'.format(filename))
    return cached.ranges


def save_cache(filename, files, ignore_private_asn, ranges):
    try:
        save_pickle(filename, CachedRanges(fingerprint(files, ignore_private_asn), ranges))
    except OSError as e:
        log.warning('Could not write cache {}: {}'.format(filename, e))
    else:
        log.info('Saved ranges to cache {}'.format(filename))
