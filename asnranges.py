#!/usr/bin/env python
import logging
import sys
from argparse import ArgumentParser, FileType
from collections import namedtuple

import pandas as pd

from attribution import build_asn_ranges
from cache import load_cache, save_cache
from collector import parse_files
from include_exclude import filter_file
from ranges.iprange import FAMILIES
from utils.progress import Progress
from utils.utils import read_filenames, unique_everseen

log = logging.getLogger()

Config = namedtuple('Config', ['target_asns', 'input_files', 'ignore_private_asn', 'cache', 'poolsize', 'filter'])


def parse_asn(text):
    text = text.strip()
    if text[:2].upper() == 'AS':
        text = text[2:]
    return int(text)


def read_asns(filename):
    try:
        df = pd.read_csv(filename, comment='#', header=None, names=['asn'], usecols=[0], dtype=str, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        return set()
    return {parse_asn(asn) for asn in df.asn.dropna()}


def asn_ranges(config: Config):
    """Attribution maps of every ASN, from the cache when it matches the inputs."""
    if config.cache:
        ranges = load_cache(config.cache, config.input_files, config.ignore_private_asn)
        if ranges is not None:
            return ranges
    collector = parse_files(config.input_files, poolsize=config.poolsize, ignore_private_asn=config.ignore_private_asn)
    ranges = build_asn_ranges(collector)
    if config.cache:
        save_cache(config.cache, config.input_files, config.ignore_private_asn, ranges)
    return ranges


def target_ranges(ranges, asns):
    return {family: ranges[family].ranges(asns) for family in FAMILIES}


def run(config: Config):
    """
    Ranges of the target ASNs per family. The second value holds the attribution maps of
    every ASN, or None for the include/exclude filter, which only computes the targets.
    """
    if config.filter:
        if len(config.input_files) != 1:
            raise ValueError('The include/exclude filter needs exactly one input file, got {:,d}'.format(len(config.input_files)))
        return filter_file(config.input_files[0], config.target_asns, ignore_private_asn=config.ignore_private_asn), None
    ranges = asn_ranges(config)
    return target_ranges(ranges, config.target_asns), ranges


def write_ranges(f, ranges):
    for family in FAMILIES:
        for network in ranges[family].networks():
            f.write('{}\n'.format(network))


def write_table(filename, ranges, asns):
    rows = [(asn, str(network)) for family in FAMILIES for asn in sorted(asns) for network in ranges[family][asn].networks()]
    pd.DataFrame(rows, columns=['asn', 'prefix']).to_csv(filename, index=False)


def main(argv=None):
    parser = ArgumentParser(description='Minimal IPv4/IPv6 CIDR blocks originated by ASNs, from BGP RIB dumps.')
    parser.add_argument('asns', nargs='*', type=parse_asn, help='Target ASNs.')
    parser.add_argument('-m', '--mrt', action='append', default=[], help='MRT/RIB file, or its bgpdump -m text (*.txt[.gz|.bz2]). Can be repeated.')
    parser.add_argument('-F', '--file-list', help='File with one MRT/RIB filename per line.')
    parser.add_argument('-a', '--asn-file', help='File with one target ASN per line.')
    parser.add_argument('--ignore-private-asn', action='store_true', help='Ignore private and reserved origin ASNs.')
    parser.add_argument('--cache', help='Cache file for the attribution of every ASN.')
    parser.add_argument('-p', '--poolsize', type=int, default=-1, help='Parsing processes. Negative parses sequentially, 0 uses every CPU.')
    parser.add_argument('--filter', action='store_true', help='Use include/exclude subtraction instead of interval attribution. Single input file only.')
    parser.add_argument('-t', '--table', help='CSV file for the ranges of each target ASN.')
    parser.add_argument('-o', '--output', type=FileType('w'), default='-', help='Output file.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Do not show progress.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging.')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
    Progress.set_output(not args.quiet)

    files = list(args.mrt)
    if args.file_list:
        files.extend(read_filenames(args.file_list))
    files = list(unique_everseen(files)) or ['./rib']
    asns = set(args.asns)
    if args.asn_file:
        asns.update(read_asns(args.asn_file))
    if args.filter and len(files) != 1:
        parser.error('--filter needs exactly one input file')
    if args.filter and args.table:
        parser.error('--table is not available with --filter')
    if not asns:
        log.warning('No target ASNs given, the output will be empty')

    config = Config(target_asns=frozenset(asns), input_files=files, ignore_private_asn=args.ignore_private_asn, cache=args.cache, poolsize=args.poolsize, filter=args.filter)
    ranges, amaps = run(config)
    if args.table:
        write_table(args.table, amaps, config.target_asns)
    write_ranges(args.output, ranges)
    if args.output is not sys.stdout:
        args.output.close()


if __name__ == '__main__':
    main()
