import errno
import os
import re
from collections import namedtuple
from itertools import groupby
from subprocess import Popen, PIPE, CalledProcessError
from tempfile import TemporaryFile

from utils.utils import File2, strip_compression

Announcement = namedtuple('Announcement', ['prefix', 'origins', 'path'])

confed = re.compile(r'\([^)]*\)')


class RIB:
    """
    Lines of an MRT dump in bgpdump's one-line (-m) format.

    Binary MRT files are converted by running bgpdump. Files that were already converted
    (*.txt, optionally gzip or bzip2 compressed) are read directly.
    """

    def __init__(self, filename):
        self.filename = filename
        self.p = None
        self.f = None
        self.err = None

    def __enter__(self):
        if not os.path.exists(self.filename):
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), self.filename)
        if strip_compression(self.filename).endswith('.txt'):
            self.f = File2(self.filename)
            return self.f.__enter__()
        self.err = TemporaryFile('w+')
        try:
            self.p = Popen(['bgpdump', '-m', self.filename], stdout=PIPE, stderr=self.err, universal_newlines=True)
        except OSError:
            self.err.close()
            raise
        return self.p.stdout

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.f is not None:
            return self.f.__exit__(exc_type, exc_val, exc_tb)
        try:
            if exc_type is not None:
                self.p.kill()
                self.p.wait()
                return False
            self.p.stdout.close()
            if self.p.wait():
                self.err.seek(0)
                raise CalledProcessError(self.p.returncode, self.p.args, stderr=self.err.read())
        finally:
            self.err.close()
        return False


def parse_path(path_str):
    """
    Split a bgpdump AS path into (origins, path). A trailing AS_SET is the set of origins and
    is not part of the path. Everything up to an earlier AS_SET is dropped, as are confederation
    segments. Prepending is collapsed.
    """
    path_str = confed.sub(' ', path_str.strip())
    origins = None
    if path_str.endswith('}'):
        start = path_str.rindex('{')
        origins = {int(asn) for asn in path_str[start + 1:-1].split(',') if asn.strip()}
        path_str = path_str[:start]
    close_pos = path_str.rfind('}')
    if close_pos >= 0:
        path_str = path_str[close_pos + 1:]
    path = [asn for asn, _ in groupby(int(asn) for asn in path_str.split())]
    if origins is None:
        origins = {path[-1]} if path else set()
    return origins, path


def parse_line(line: str):
    """Parse one bgpdump -m line. Returns None for anything other than a RIB entry or an announcement."""
    fields = line.rstrip('\r\n').split('|')
    if len(fields) < 7 or fields[2] not in ('B', 'A'):
        return None
    dumptype = fields[0]
    if not dumptype.startswith(('TABLE_DUMP', 'BGP4MP')):
        return None
    pathidx = 7 if dumptype.endswith('_AP') else 6
    if len(fields) <= pathidx:
        return None
    origins, path = parse_path(fields[pathidx])
    return Announcement(fields[5], origins, path)
