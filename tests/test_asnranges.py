import os
import tempfile
import unittest

import pandas as pd

from asnranges import Config, main, parse_asn, read_asns, run
from ranges.iprange import IPV4, IPV6
from test_ribs import rib_line


class TestAsnRanges(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.rib1 = self.path('rib1.txt')
        self.rib2 = self.path('rib2.txt')
        with open(self.rib1, 'w') as f:
            f.write(rib_line('10.0.0.0/24', '3356 1'))
            f.write(rib_line('10.0.0.128/25', '3356 2'))
            f.write(rib_line('2001:db8::/32', '6939 1'))
        with open(self.rib2, 'w') as f:
            f.write(rib_line('10.0.1.0/24', '174 1'))
            f.write(rib_line('10.0.2.0/24', '174 64512'))

    def tearDown(self):
        self.tmpdir.cleanup()

    def path(self, name):
        return os.path.join(self.tmpdir.name, name)

    def output(self, *args):
        filename = self.path('out.txt')
        main(['-q', '-o', filename] + list(args))
        with open(filename) as f:
            return f.read().split()

    def test_parse_asn(self):
        self.assertEqual(parse_asn('AS13335'), 13335)
        self.assertEqual(parse_asn(' as15169 '), 15169)
        self.assertEqual(parse_asn('3356'), 3356)
        with self.assertRaises(ValueError):
            parse_asn('ASX')

    def test_read_asns(self):
        filename = self.path('asns.txt')
        with open(filename, 'w') as f:
            f.write('# targets\nAS1\n2 # second\n\n')
        self.assertEqual(read_asns(filename), {1, 2})
        with open(filename, 'w') as f:
            pass
        self.assertEqual(read_asns(filename), set())

    def test_attribution(self):
        self.assertEqual(self.output('-m', self.rib1, '-m', self.rib2, '1'), ['10.0.0.0/25', '10.0.1.0/24', '2001:db8::/32'])

    def test_upstream(self):
        self.assertEqual(self.output('-m', self.rib1, '-m', self.rib2, '3356'), ['10.0.0.0/24'])

    def test_private_asns(self):
        self.assertEqual(self.output('-m', self.rib2, '64512'), ['10.0.2.0/24'])
        self.assertEqual(self.output('-m', self.rib2, '--ignore-private-asn', '64512'), [])
        self.assertEqual(self.output('-m', self.rib2, '--ignore-private-asn', '174'), ['10.0.1.0/24'])

    def test_file_list_and_asn_file(self):
        filelist = self.path('files.txt')
        with open(filelist, 'w') as f:
            f.write('{}\n# comment\n{}\n'.format(self.rib1, self.rib2))
        asnfile = self.path('asns.txt')
        with open(asnfile, 'w') as f:
            f.write('AS2\n')
        self.assertEqual(self.output('-F', filelist, '-a', asnfile, '1'), ['10.0.0.0/23', '2001:db8::/32'])

    def test_filter(self):
        self.assertEqual(self.output('--filter', '-m', self.rib1, '1'), ['10.0.0.0/25', '2001:db8::/32'])

    def test_filter_needs_one_file(self):
        with self.assertRaises(SystemExit):
            main(['-q', '--filter', '-m', self.rib1, '-m', self.rib2, '1'])
        with self.assertRaises(SystemExit):
            main(['-q', '--filter', '-m', self.rib1, '-t', self.path('table.csv'), '1'])
        config = Config(frozenset([1]), [self.rib1, self.rib2], False, None, -1, True)
        with self.assertRaises(ValueError):
            run(config)

    def test_table(self):
        table = self.path('table.csv')
        self.output('-m', self.rib1, '-m', self.rib2, '-t', table, '1', '2')
        df = pd.read_csv(table)
        self.assertEqual(list(df.columns), ['asn', 'prefix'])
        self.assertEqual(list(zip(df.asn, df.prefix)), [(1, '10.0.0.0/25'), (1, '10.0.1.0/24'), (2, '10.0.0.128/25'), (1, '2001:db8::/32')])

    def test_cache(self):
        cache = self.path('ranges.pickle')
        self.assertEqual(self.output('-m', self.rib1, '--cache', cache, '1'), ['10.0.0.0/25', '2001:db8::/32'])
        self.assertTrue(os.path.exists(cache))
        os.remove(self.rib1)
        self.assertEqual(self.output('-m', self.rib1, '--cache', cache, '2'), ['10.0.0.128/25'])

    def test_run(self):
        config = Config(frozenset([1]), [self.rib1], False, None, -1, False)
        ranges, amaps = run(config)
        self.assertEqual([str(n) for n in ranges[IPV6].networks()], ['2001:db8::/32'])
        self.assertEqual(set(amaps[IPV4]), {1, 2, 3356})
        ranges, amaps = run(config._replace(filter=True))
        self.assertIsNone(amaps)
        self.assertEqual([str(n) for n in ranges[IPV4].networks()], ['10.0.0.0/25'])

    def test_missing_input(self):
        with self.assertRaises(FileNotFoundError):
            main(['-q', '-o', self.path('out.txt'), '-m', self.path('missing.txt'), '1'])
