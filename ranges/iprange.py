import ipaddress
from bisect import bisect_right
from collections import namedtuple

Prefix = namedtuple('Prefix', ['network', 'prefixlen'])


class InvalidBoundaryError(ValueError):
    """A prefix or interval that does not fit inside its address space."""


class Family(namedtuple('Family', ['version', 'width'])):
    """An address family. Addresses are plain integers of ``width`` bits."""

    __slots__ = ()

    def __str__(self):
        return 'IPv{}'.format(self.version)

    @property
    def end(self):
        """One past the last address of the family, used as the end-of-space sentinel."""
        return 1 << self.width

    def packed(self, address):
        return address.to_bytes(self.width // 8, 'big')

    def address(self, address):
        if self.version == 4:
            return ipaddress.IPv4Address(address)
        return ipaddress.IPv6Address(address)

    def network(self, prefix):
        if self.version == 4:
            return ipaddress.IPv4Network(tuple(prefix))
        return ipaddress.IPv6Network(tuple(prefix))

    def format(self, prefix):
        return '{}/{}'.format(self.address(prefix.network), prefix.prefixlen)


IPV4 = Family(4, 32)
IPV6 = Family(6, 128)
FAMILIES = (IPV4, IPV6)


def check_prefix(family: Family, prefix: Prefix):
    network, prefixlen = prefix
    if not 0 <= prefixlen <= family.width:
        raise InvalidBoundaryError('Mask length {} is outside 0-{} for {}'.format(prefixlen, family.width, family))
    if not 0 <= network < family.end:
        raise InvalidBoundaryError('Network {} is outside the {} address space'.format(network, family))
    if network & ((1 << (family.width - prefixlen)) - 1):
        raise InvalidBoundaryError('{}/{} has host bits set'.format(family.address(network), prefixlen))


def last(family: Family, prefix: Prefix):
    return prefix.network | ((1 << (family.width - prefix.prefixlen)) - 1)


def parse_prefix(text: str):
    """
    Parse "address/length" into (Family, Prefix). A missing length is a host prefix.
    Malformed text raises ValueError, an impossible mask length or set host bits raise InvalidBoundaryError.
    """
    address, _, prefixlen = text.strip().partition('/')
    address = ipaddress.ip_address(address)
    family = IPV4 if address.version == 4 else IPV6
    prefix = Prefix(int(address), int(prefixlen) if prefixlen else family.width)
    check_prefix(family, prefix)
    return family, prefix


def split_points(family: Family, prefix: Prefix):
    """The interval boundaries of a prefix: its first address and one past its last.
    The second may be family.end, which marks the end of the address space."""
    check_prefix(family, prefix)
    return prefix.network, last(family, prefix) + 1


def interval_to_cidrs(family: Family, start: int, end: int):
    """Decompose [start, end) into the minimal list of aligned CIDR blocks, in ascending order."""
    if start < 0 or end > family.end or start >= end:
        raise InvalidBoundaryError('Invalid {} interval [{}, {})'.format(family, start, end))
    cidrs = []
    while start < end:
        # Largest block aligned on start, shrunk until it fits before end
        size = start & -start if start else family.end
        while start + size > end:
            size >>= 1
        cidrs.append(Prefix(start, family.width - size.bit_length() + 1))
        start += size
    return cidrs


class IpRangeSet:
    """
    A set of addresses of a single family, kept as sorted, disjoint and non-adjacent
    half-open intervals. Iteration yields the minimal CIDR cover of the set.

    Blocks added in ascending order are merged as they arrive. Out of order additions are
    merged on the next read or on simplify(), so every read sees the minimal form.
    """

    __slots__ = ['family', '_intervals', '_normal']

    def __init__(self, family: Family, blocks=()):
        self.family = family
        self._intervals = []
        self._normal = True
        for prefix in blocks:
            self.add(prefix)

    def __repr__(self):
        return 'IpRangeSet({}, [{}])'.format(self.family, ', '.join(self.family.format(p) for p in self))

    def __iter__(self):
        self.simplify()
        for start, end in self._intervals:
            yield from interval_to_cidrs(self.family, start, end)

    def __len__(self):
        return sum(1 for _ in self)

    def __bool__(self):
        return bool(self._intervals)

    def __contains__(self, address):
        self.simplify()
        i = bisect_right(self._intervals, (address, self.family.end + 1))
        return i > 0 and self._intervals[i - 1][1] > address

    def __eq__(self, other):
        if not isinstance(other, IpRangeSet):
            return NotImplemented
        return self.family == other.family and list(self.intervals()) == list(other.intervals())

    __hash__ = None

    def _check_family(self, other):
        if other.family != self.family:
            raise ValueError('Cannot combine {} and {} ranges'.format(self.family, other.family))

    def add(self, prefix: Prefix):
        check_prefix(self.family, prefix)
        self.add_interval(prefix.network, last(self.family, prefix) + 1)

    def add_interval(self, start, end):
        if start >= end:
            raise InvalidBoundaryError('Invalid {} interval [{}, {})'.format(self.family, start, end))
        intervals = self._intervals
        if self._normal:
            if not intervals or start > intervals[-1][1]:
                intervals.append((start, end))
                return
            last_start, last_end = intervals[-1]
            if start >= last_start:
                if end > last_end:
                    intervals[-1] = (last_start, end)
                return
        intervals.append((start, end))
        self._normal = False

    def update(self, other):
        self._check_family(other)
        for start, end in other._intervals:
            self.add_interval(start, end)
        return self

    def remove(self, prefix: Prefix):
        """Subtract one block. Stored blocks overlapping it are cut down to the parts outside of it."""
        check_prefix(self.family, prefix)
        self.simplify()
        rstart = prefix.network
        rend = last(self.family, prefix) + 1
        intervals = self._intervals
        i = bisect_right(intervals, (rstart, self.family.end + 1))
        if i and intervals[i - 1][1] > rstart:
            i -= 1
        j = i
        pieces = []
        while j < len(intervals) and intervals[j][0] < rend:
            start, end = intervals[j]
            if start < rstart:
                pieces.append((start, rstart))
            if end > rend:
                pieces.append((rend, end))
            j += 1
        if j > i:
            intervals[i:j] = pieces
        return self

    def simplify(self):
        if not self._normal:
            merged = []
            for start, end in sorted(self._intervals):
                if merged and start <= merged[-1][1]:
                    if end > merged[-1][1]:
                        merged[-1] = (merged[-1][0], end)
                else:
                    merged.append((start, end))
            self._intervals = merged
            self._normal = True
        return self

    def copy(self):
        rs = IpRangeSet(self.family)
        rs._intervals = list(self._intervals)
        rs._normal = self._normal
        return rs

    def intervals(self):
        self.simplify()
        return iter(self._intervals)

    def overlaps(self, prefix: Prefix):
        self.simplify()
        start = prefix.network
        end = last(self.family, prefix) + 1
        i = bisect_right(self._intervals, (start, self.family.end + 1))
        if i and self._intervals[i - 1][1] > start:
            return True
        return i < len(self._intervals) and self._intervals[i][0] < end

    def num_addresses(self):
        return sum(end - start for start, end in self.intervals())

    def networks(self):
        for prefix in self:
            yield self.family.network(prefix)
