#!/usr/bin/env python
"""Download RouteViews and RIPE RIS RIB snapshots for a range of days."""
import logging
import os.path
from argparse import ArgumentParser
from datetime import timedelta

import requests
from dateutil.parser import parse

from utils.progress import Progress
from utils.subprocess_pool import Popen2

log = logging.getLogger()

routeviews = ['route-views.chicago', 'route-views.eqix', 'route-views.isc', 'route-views.jinx', 'route-views.kixp', 'route-views.linx', 'route-views.nwax', 'route-views.perth', 'route-views.saopaulo', 'route-views.sfmix', 'route-views.sg', 'route-views.soxrs', 'route-views.sydney', 'route-views.telxatl', 'route-views.wide', 'route-views4', 'route-views3']
RIS_COLLECTORS = 27


def exists(url, timeout=30):
    try:
        response = requests.head(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        log.warning('HEAD {} failed: {}'.format(url, e))
        return False
    return response.status_code == 200


def rib_urls(date, hour=0):
    """(collector, url) of the RIB snapshot each collector wrote at hour on date."""
    stamp = '{}{:02d}{:02d}.{:02d}00'.format(date.year, date.month, date.day, hour)
    month = '{}.{:02d}'.format(date.year, date.month)
    for rv in routeviews:
        yield rv, 'http://archive.routeviews.org/{}/bgpdata/{}/RIBS/rib.{}.bz2'.format(rv, month, stamp)
    yield 'route-views2', 'http://archive.routeviews.org/bgpdata/{}/RIBS/rib.{}.bz2'.format(month, stamp)
    for i in range(RIS_COLLECTORS):
        yield 'rrc{:02d}'.format(i), 'https://data.ris.ripe.net/rrc{:02d}/{}/bview.{}.gz'.format(i, month, stamp)


def output_filename(outputdir, collector, date, url):
    ext = url.rpartition('.')[2]
    return os.path.join(outputdir, '{}.{}.{:02d}.{:02d}.{}'.format(collector, date.year, date.month, date.day, ext))


def download(popen2, outputdir, date, hour=0, no_clobber=False):
    """Queue a wget for every available snapshot of date. Returns the output filenames."""
    filenames = []
    for collector, url in rib_urls(date, hour=hour):
        filename = output_filename(outputdir, collector, date, url)
        if no_clobber and os.path.exists(filename):
            filenames.append(filename)
            continue
        if exists(url):
            popen2.run(['wget', '-q', '-O', filename, url])
            filenames.append(filename)
        else:
            log.debug('Missing {}'.format(url))
    return filenames


def days(start, end=None):
    start = parse(start)
    end = parse(end) if end else start
    return [start + timedelta(i) for i in range((end - start).days + 1)]


def main():
    parser = ArgumentParser(description='Download RouteViews and RIPE RIS RIB snapshots.')
    parser.add_argument('-p', '--pool', dest='pool', default=1, type=int, help='Parallel downloads.')
    parser.add_argument('-s', '--start', dest='start', required=True, help='First day.')
    parser.add_argument('-e', '--end', dest='end', help='Last day, defaults to the first.')
    parser.add_argument('-H', '--hour', dest='hour', default=0, type=int, help='Hour of the snapshot.')
    parser.add_argument('-d', '--dir', dest='dir', default='.', help='Output directory.')
    parser.add_argument('-n', '--nc', dest='nc', action='store_true', help='Skip files that already exist.')
    parser.add_argument('-l', '--list', dest='list', help='Write the downloaded filenames to this file, for asnranges -F.')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
    os.makedirs(args.dir, exist_ok=True)

    dates = days(args.start, args.end)
    filenames = []
    with Popen2(args.pool) as popen2:
        pb = Progress(len(dates), 'Downloading RIBs', callback=lambda: 'Files {:,d}'.format(len(filenames)))
        for date in pb.iterator(dates):
            filenames.extend(download(popen2, args.dir, date, hour=args.hour, no_clobber=args.nc))
    if args.list:
        with open(args.list, 'w') as f:
            f.writelines(filename + '\n' for filename in filenames)


if __name__ == '__main__':
    main()
