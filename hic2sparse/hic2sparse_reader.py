"""
Readers for the .hic binary layout.

The file is self-describing: a header carrying a forward pointer ("master"
offset) to the footer index, which points at per chromosome-pair matrix
regions, which in turn list zlib compressed blocks of contact records. Every
reader here takes a HicCursor and returns its own values; readers that need to
jump elsewhere in the file use a separate cursor (HicCursor.at) so the caller's
position is never disturbed.

Layout details follow the straw project by Neva C. Durand and Yue Wu
(https://github.com/theaidenlab/straw).
"""
import struct
import zlib
from collections import OrderedDict, namedtuple
from enum import Enum

import numpy as np

from .hic2sparse_config import (
    ABSENT_POSITION,
    ALL_CHROM_NAMES,
    BLOCK_LAYOUT_VERSION,
    BLOCK_POINTER_DTYPE,
    DENSE,
    HIC_MAGIC,
    LIST_OF_ROWS,
    MIN_HIC_VERSION,
    RECORD_DTYPE,
    SHORT_SENTINEL,
)
from .hic2sparse_errors import (
    DecompressionError,
    InvalidFormatError,
    TruncatedReadError,
    UnsupportedVersionError,
)

FileInfo = namedtuple('FileInfo', [
    'version',
    'master',
    'genome',
    'metadata',
    'chromosomes',
    'chromosome_lengths',
    'resolutions',
    'selected_resolution',
    'first_chromosome_is_all',
])
IndexEntry = namedtuple('IndexEntry', ['key', 'filepos', 'size'])
BlockDirectory = namedtuple('BlockDirectory', [
    'unit',
    'res_idx',
    'binsize',
    'block_bin_count',
    'block_col_count',
    'blocks',
])


class CountWidth(Enum):
    """
    Width of the count values in a v7+ block. The stored flag is inverted
    with respect to its name: useShort == 0 means counts ARE 2-byte shorts.
    """
    NARROW = '<h'
    WIDE = '<f'

    @classmethod
    def from_use_short(cls, use_short):
        return cls.NARROW if use_short == 0 else cls.WIDE


class HicCursor(object):
    """
    Positioned little-endian reader over a bytes-like buffer (bytes or mmap).
    Any short read raises TruncatedReadError.
    """

    def __init__(self, buf, position=0):
        self.buf = buf
        self.size = len(buf)
        self.position = position

    def at(self, position):
        """
        Return a new cursor over the same buffer, positioned at `position`
        """
        return HicCursor(self.buf, position)

    def tell(self):
        return self.position

    def seek(self, position):
        self.position = position

    def remaining(self):
        return max(self.size - self.position, 0)

    def read(self, nbytes):
        if nbytes < 0 or self.position < 0 or nbytes > self.remaining():
            raise TruncatedReadError(
                'Expected %s bytes at offset %s, but the buffer holds %s bytes'
                % (nbytes, self.position, self.size))
        data = self.buf[self.position:self.position + nbytes]
        self.position += nbytes
        return data

    def unpack(self, fmt):
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))[0]

    def read_byte(self):
        return self.unpack('<b')

    def read_short(self):
        return self.unpack('<h')

    def read_int(self):
        return self.unpack('<i')

    def read_long(self):
        return self.unpack('<q')

    def read_float(self):
        return self.unpack('<f')

    def read_cstr(self):
        """
        Read up to and including a null terminator; return the decoded bytes
        before it
        """
        if self.position < 0 or self.position >= self.size:
            raise TruncatedReadError(
                'Buffer unexpectedly empty while trying to read null-terminated string')
        end = self.buf.find(b"\0", self.position)
        if end == -1:
            raise TruncatedReadError(
                'No null terminator found for string at offset %s' % self.position)
        data = self.buf[self.position:end]
        self.position = end + 1
        return data.decode("utf-8", errors="ignore")

    def read_array(self, dtype, count):
        """
        Read `count` items of numpy `dtype`. The result is a copy, so it does
        not hold a reference to the underlying buffer
        """
        dtype = np.dtype(dtype)
        nbytes = dtype.itemsize * count
        data = self.read(nbytes)
        return np.frombuffer(data, dtype=dtype, count=count).copy()


def empty_records():
    return np.zeros(0, dtype=RECORD_DTYPE)


def make_records(chrom_id, bin1, bin2, counts):
    """
    Build an output chunk from parallel sequences, tagging every row with the
    chromosome id
    """
    records = np.zeros(len(counts), dtype=RECORD_DTYPE)
    records['chrom_id'] = chrom_id
    records['bin1'] = bin1
    records['bin2'] = bin2
    records['count'] = counts
    return records


def concat_records(chunks):
    if not chunks:
        return empty_records()
    return np.concatenate(chunks, axis=0)


def read_header(cursor, resolution):
    """
    Reads the header of a .hic file starting at the cursor position. Returns
    a FileInfo. selected_resolution is the index of the first resolution equal
    to `resolution`, or None if the file does not store it.
    """
    if cursor.remaining() < len(HIC_MAGIC) or cursor.read(len(HIC_MAGIC)) != HIC_MAGIC:
        raise InvalidFormatError('Hi-C magic string is missing, does not '
                                 'appear to be a hic file.')
    # remainder of the magic line
    cursor.read_cstr()
    version = cursor.read_int()
    if version < MIN_HIC_VERSION:
        raise UnsupportedVersionError(version)
    master = cursor.read_long()
    genome = cursor.read_cstr()
    metadata = OrderedDict()
    nattributes = cursor.read_int()
    for _ in range(nattributes):
        key = cursor.read_cstr()
        metadata[key] = cursor.read_cstr()
    chromosomes = []
    chromosome_lengths = []
    nChrs = cursor.read_int()
    for _ in range(nChrs):
        chromosomes.append(cursor.read_cstr())
        chromosome_lengths.append(cursor.read_int())
    resolutions = []
    selected = None
    nBpRes = cursor.read_int()
    for idx in range(nBpRes):
        res = cursor.read_int()
        resolutions.append(res)
        if res == resolution and selected is None:
            selected = idx
    first_is_all = bool(chromosomes) and chromosomes[0] in ALL_CHROM_NAMES
    return FileInfo(version, master, genome, metadata, chromosomes,
                    chromosome_lengths, resolutions, selected, first_is_all)


def iter_index_entries(cursor, master):
    """
    Seek to the master index and yield its entries in file order
    """
    cursor.seek(master)
    # total byte count of the footer; not enforced
    cursor.read_int()
    nEntries = cursor.read_int()
    for _ in range(nEntries):
        key = cursor.read_cstr()
        filepos = cursor.read_long()
        size = cursor.read_int()
        yield IndexEntry(key, filepos, size)


def read_footer(cursor, info):
    """
    Walk the master index and decode the matrix each entry points to.
    Returns the records of every matrix, concatenated in index order.
    """
    chunks = []
    for entry in iter_index_entries(cursor, info.master):
        records = read_matrix(cursor, entry.filepos, entry.size, info)
        if records.size:
            chunks.append(records)
    return concat_records(chunks)


def read_block_directory(cursor):
    """
    Read one per-resolution block directory, including its block pointers
    """
    unit = cursor.read_cstr()
    res_idx = cursor.read_int()
    # sumCounts, occupiedCellCount, stdDev, percent95
    cursor.read_array('<f', 4)
    binsize = cursor.read_int()
    block_bin_count = cursor.read_int()
    block_col_count = cursor.read_int()
    nBlocks = cursor.read_int()
    blocks = cursor.read_array(BLOCK_POINTER_DTYPE, nBlocks)
    return BlockDirectory(unit, res_idx, binsize, block_bin_count,
                          block_col_count, blocks)


def read_matrix(cursor, filepos, size, info):
    """
    Decode the matrix region at `filepos`. Only intra-chromosomal regions
    are decoded, and the synthetic ALL chromosome is skipped. Of the region's
    block directories only the one at the selected resolution is expanded;
    the others are still read through so the directory list stays aligned.
    """
    if filepos == ABSENT_POSITION:
        return empty_records()
    matrix = cursor.at(filepos)
    c1 = matrix.read_int()
    c2 = matrix.read_int()
    if c1 != c2 or (info.first_chromosome_is_all and c1 == 0):
        return empty_records()
    chunks = []
    nRes = matrix.read_int()
    for res_id in range(nRes):
        directory = read_block_directory(matrix)
        if res_id != info.selected_resolution:
            continue
        for block_id, block_pos, block_size in directory.blocks:
            records = read_block(matrix, int(block_pos), int(block_size),
                                 c1, info.version)
            if records.size:
                chunks.append(records)
    return concat_records(chunks)


def decompress(compressed):
    """
    Inflate a complete zlib stream. The output grows as needed; a stream
    that ends early raises DecompressionError
    """
    decompressor = zlib.decompressobj()
    try:
        uncompressed = decompressor.decompress(compressed)
        uncompressed += decompressor.flush()
    except zlib.error as exc:
        raise DecompressionError('Unable to decompress block: %s' % exc) from exc
    if not decompressor.eof:
        raise DecompressionError('Compressed block ended before the end of its stream')
    return uncompressed


def read_block(cursor, filepos, size, chrom_id, version):
    """
    Decompress the block at `filepos` and decode its contact records.
    Does not move `cursor`. Zero-size blocks carry no records.
    """
    if size <= 0:
        return empty_records()
    compressed = cursor.at(filepos).read(size)
    block = HicCursor(decompress(compressed))
    nRecords = block.read_int()
    if version < BLOCK_LAYOUT_VERSION:
        return read_plain_records(block, nRecords, chrom_id)
    binXOffset = block.read_int()
    binYOffset = block.read_int()
    width = CountWidth.from_use_short(block.read_byte())
    type_ = block.read_byte()
    if type_ == LIST_OF_ROWS:
        return read_list_of_rows(block, binXOffset, binYOffset, width, chrom_id)
    elif type_ == DENSE:
        return read_dense(block, binXOffset, binYOffset, width, chrom_id)
    # unknown representation carries no records
    return empty_records()


def read_plain_records(block, nRecords, chrom_id):
    """
    Pre-v7 blocks: nRecords x (int binX, int binY, float count)
    """
    triples = block.read_array(
        {'names': ['binX', 'binY', 'count'], 'formats': ['<i', '<i', '<f']},
        nRecords)
    return make_records(chrom_id, triples['binX'], triples['binY'], triples['count'])


def read_list_of_rows(block, binXOffset, binYOffset, width, chrom_id):
    binX = []
    binY = []
    counts = []
    rowCount = block.read_short()
    for _ in range(rowCount):
        y = block.read_short() + binYOffset
        colCount = block.read_short()
        for _ in range(colCount):
            x = block.read_short() + binXOffset
            binX.append(x)
            binY.append(y)
            counts.append(block.unpack(width.value))
    return make_records(chrom_id, binX, binY, counts)


def read_dense(block, binXOffset, binYOffset, width, chrom_id):
    """
    Dense blocks store nPts values row-major with row width w. Missing
    points hold a sentinel (-32768 for shorts, NaN for floats) and are dropped.
    """
    nPts = block.read_int()
    w = block.read_short()
    if nPts > 0 and w <= 0:
        raise InvalidFormatError('Dense block has invalid row width %s' % w)
    values = block.read_array(width.value, max(nPts, 0))
    if width is CountWidth.NARROW:
        keep = values != SHORT_SENTINEL
    else:
        keep = ~np.isnan(values)
    idx = np.flatnonzero(keep)
    row = idx // w if idx.size else idx
    col = idx - row * w
    return make_records(chrom_id, binXOffset + col, binYOffset + row, values[keep])
