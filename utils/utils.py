import bz2
import gzip
import pickle
from itertools import filterfalse


class File2:
    """Opens filename for reading as text, decompressing gzip and bzip2 by extension."""

    def __init__(self, filename):
        self.filename = filename
        self.compression = infer_compression(filename)

    def __enter__(self):
        if self.compression == 'gzip':
            self.f = gzip.open(self.filename, 'rt')
        elif self.compression == 'bzip2':
            self.f = bz2.open(self.filename, 'rt')
        else:
            self.f = open(self.filename)
        return self.f

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.f.close()
        return False


def infer_compression(filename):
    ending = filename.rpartition('.')[2]
    if ending == 'gz':
        return 'gzip'
    elif ending == 'bz2':
        return 'bzip2'
    return None


def strip_compression(filename):
    if infer_compression(filename):
        return filename.rpartition('.')[0]
    return filename


def read_filenames(filename):
    """Filenames listed one per line. Blank lines and # comments are skipped."""
    with File2(filename) as f:
        for line in f:
            line = line.partition('#')[0].strip()
            if line:
                yield line


def unique_everseen(iterable):
    seen = set()
    seen_add = seen.add
    for element in filterfalse(seen.__contains__, iterable):
        seen_add(element)
        yield element


def load_pickle(filename):
    with open(filename, 'rb') as f:
        return pickle.load(f)


def save_pickle(filename, obj):
    with open(filename, 'wb') as f:
        pickle.dump(obj, f, protocol=pickle.HIGHEST_PROTOCOL)
