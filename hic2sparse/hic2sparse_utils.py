"""
hic2sparse
----------

Reads the intra-chromosomal contact matrices of a .hic file (from juicer) at a
single resolution and returns them as sparse (chromosome, bin1, bin2, count)
records. The records can be viewed as a pandas DataFrame, dumped as text or
written to a .cool file (for cooler).

The .hic reading is based off of the straw project by Neva C. Durand and
Yue Wu (https://github.com/theaidenlab/straw).
"""
import mmap
import os
import sys
import time
from collections import namedtuple

import cooler
import h5py
import numpy as np
import pandas as pd

from ._version import __version__
from .hic2sparse_config import (
    BIN_DTYPE,
    COOL_COUNT_DTYPE,
    DATAFRAME_COLUMNS,
)
from .hic2sparse_errors import ResolutionNotFoundError
from .hic2sparse_reader import HicCursor, read_footer, read_header

HicContacts = namedtuple('HicContacts', [
    'chroms',
    'lengths',
    'resolution',
    'genome',
    'records',
])


def map_file(req):
    """
    Memory-map an open file for reading. Empty files can't be mapped, so
    return an empty buffer for them
    """
    if os.fstat(req.fileno()).st_size == 0:
        return b""
    return mmap.mmap(req.fileno(), 0, access=mmap.ACCESS_READ)


def read_file_info(infile, resolution=0):
    """
    Read only the header of the given .hic file
    """
    with open(infile, 'rb') as req:
        buf = map_file(req)
        try:
            return read_header(HicCursor(buf), resolution)
        finally:
            if isinstance(buf, mmap.mmap):
                buf.close()


def hic2sparse_parse(infile, resolution):
    """
    Main function that coordinates the reading of header and footer from infile
    and decodes every intra-chromosomal matrix at the given resolution.

    Params:
    <infile> str .hic filename
    <resolution> int bp bin size. Must be one of the resolutions in the file

    Returns a HicContacts. Its records have chromosome ids that index
    `chroms`, which never includes the synthetic ALL chromosome. Bins are in
    bin units; multiply by `resolution` for bp coordinates.

    Raises ResolutionNotFoundError (before the footer is read) if the file does
    not store `resolution`, or another HicFormatError if the file is malformed.
    """
    resolution = int(resolution)
    with open(infile, 'rb') as req:
        buf = map_file(req)
        try:
            cursor = HicCursor(buf)
            info = read_header(cursor, resolution)
            if info.selected_resolution is None:
                raise ResolutionNotFoundError(resolution, info.resolutions)
            records = read_footer(cursor, info)
        finally:
            if isinstance(buf, mmap.mmap):
                buf.close()
    chroms = list(info.chromosomes)
    lengths = list(info.chromosome_lengths)
    if info.first_chromosome_is_all:
        chroms = chroms[1:]
        lengths = lengths[1:]
        records['chrom_id'] -= 1
    return HicContacts(chroms, lengths, resolution, info.genome, records)


def contacts_to_dataframe(contacts):
    """
    Tabular view of parsed contacts, with chromosome labels as a categorical
    and bins scaled to bp positions
    """
    records = contacts.records
    chromosome = pd.Categorical.from_codes(records['chrom_id'],
                                           categories=contacts.chroms)
    return pd.DataFrame({
        DATAFRAME_COLUMNS[0]: chromosome,
        DATAFRAME_COLUMNS[1]: records['bin1'] * contacts.resolution,
        DATAFRAME_COLUMNS[2]: records['bin2'] * contacts.resolution,
        DATAFRAME_COLUMNS[3]: records['count'],
    }, columns=list(DATAFRAME_COLUMNS))


def chrom_bin_offsets(lengths, binsize):
    """
    Number of bins per chromosome and the bin offset of each chromosome
    """
    n_bins = np.ceil(np.asarray(lengths, dtype=np.float64) / binsize).astype(BIN_DTYPE)
    offsets = np.r_[0, np.cumsum(n_bins)[:-1]].astype(BIN_DTYPE)
    return n_bins, offsets


def build_pixels(contacts, show_warnings=False):
    """
    Turn parsed contacts into a cooler pixel table (bin1_id <= bin2_id),
    summing duplicate pixels. Records that fall outside their chromosome are
    dropped
    """
    records = contacts.records
    n_bins, offsets = chrom_bin_offsets(contacts.lengths, contacts.resolution)
    chrom_ids = records['chrom_id']
    bin1 = np.minimum(records['bin1'], records['bin2'])
    bin2 = np.maximum(records['bin1'], records['bin2'])
    mask = (bin1 >= 0) & (bin2 < n_bins[chrom_ids])
    n_dropped = len(mask) - np.count_nonzero(mask)
    if n_dropped and show_warnings:
        print_stderr('!!! WARNING. Dropped %s records with bins outside of their chromosome.'
                     % n_dropped)
    pixels = pd.DataFrame({
        'bin1_id': bin1[mask] + offsets[chrom_ids[mask]],
        'bin2_id': bin2[mask] + offsets[chrom_ids[mask]],
        'count': records['count'][mask],
    }, columns=['bin1_id', 'bin2_id', 'count'])
    pixels = pixels.groupby(['bin1_id', 'bin2_id'], as_index=False, sort=True)['count'].sum()
    return pixels, n_dropped


def hic2sparse_convert(infile, outfile, resolution, show_warnings=False, silent=False):
    """
    Parse the given resolution of infile and write it to outfile as a
    single-resolution .cool file

    Params:
    <infile> str .hic filename
    <outfile> str .cool output filename
    <resolution> int bp bin size
    <show_warnings> bool. If True, print out WARNING messages
    <silent> bool. If true, hide standard output
    """
    warn = False
    t_start = time.time()
    contacts = hic2sparse_parse(infile, resolution)
    if not silent:
        print('#############################')
        print('### hic2sparse / convert ###')
        print('#############################')
        print('... Chromosomes: ', contacts.chroms)
        print('... Resolution: ', contacts.resolution)
        print('... Genome: ', contacts.genome)
        print('... Records: ', len(contacts.records))
    if not outfile.endswith('.cool'):
        outfile = outfile + '.cool'
    if os.path.exists(outfile):
        os.remove(outfile)
        warn = True
        if show_warnings:
            print_stderr('!!! WARNING: removed pre-existing file: %s' % (outfile))
    found = set(np.unique(contacts.records['chrom_id']).tolist())
    for chrom_id, name in enumerate(contacts.chroms):
        if chrom_id not in found:
            warn = True
            if show_warnings:
                print_stderr('!!! WARNING. No contacts found for chromosome %s.' % name)
    pixels, n_dropped = build_pixels(contacts, show_warnings)
    if n_dropped:
        warn = True
    chromsizes = pd.Series(index=contacts.chroms, data=contacts.lengths)
    bins = cooler.binnify(chromsizes, contacts.resolution)
    cooler.create_cooler(
        outfile,
        bins,
        pixels,
        dtypes={'count': COOL_COUNT_DTYPE},
        assembly=contacts.genome or None,
        ordered=True)
    with h5py.File(outfile, 'r+') as h5file:
        h5file.attrs['generated-by'] = 'hic2sparse-' + __version__
    if not silent:
        print('... Resolution %s took: %s seconds.' % (contacts.resolution, time.time() - t_start))
        if warn and not show_warnings:
            print('... Warnings were found in this run. Run with -w to display them.')
        print('### Finished! Output written to: %s' % outfile)
    return outfile


def hic2sparse_dump(infile, outfile='-', resolution=0, silent=False):
    """
    Write the contacts at the given resolution as tab-separated text with
    columns chromosome, position.1, position.2, interaction.
    An outfile of '-' writes to stdout
    """
    contacts = hic2sparse_parse(infile, resolution)
    df = contacts_to_dataframe(contacts)
    if outfile == '-':
        df.to_csv(sys.stdout, sep='\t', index=False)
    else:
        df.to_csv(outfile, sep='\t', index=False)
        if not silent:
            print('### Finished! %s records written to: %s' % (len(df), outfile))
    return df


def hic2sparse_info(infile, silent=False):
    """
    Print and return the header information of a .hic file
    """
    info = read_file_info(infile)
    if not silent:
        print('##########################')
        print('### hic2sparse / info ###')
        print('##########################')
        print('... Version: ', info.version)
        print('... Genome: ', info.genome)
        print('... Chromosomes: ', info.chromosomes)
        print('... Resolutions: ', info.resolutions)
    return info


def print_stderr(message):
    """
    Simply print str message to stderr
    """
    print(message, file=sys.stderr)


def force_exit(message, req=None):
    """
    Exit the program due to some error. Print out message and close the given
    input files.
    """
    if req:
        req.close()
    print_stderr(message)
    sys.exit(1)
