"""
This module contains global hic format and cooler output attributes shared
across other modules in hic2sparse
"""
import numpy as np

# hic format
HIC_MAGIC = b"HIC"
MIN_HIC_VERSION = 6
# blocks use the list-of-rows / dense layouts from this version on
BLOCK_LAYOUT_VERSION = 7
ABSENT_POSITION = -1
LIST_OF_ROWS = 1
DENSE = 2
SHORT_SENTINEL = -32768
ALL_CHROM_NAMES = ("ALL", "All")

# Output records
CHROMID_DTYPE = np.int32
BIN_DTYPE = np.int64
COUNT_DTYPE = np.float64
RECORD_FIELDS = ('chrom_id', 'bin1', 'bin2', 'count')
RECORD_DTYPE = {'names': list(RECORD_FIELDS),
                'formats': [CHROMID_DTYPE, BIN_DTYPE, BIN_DTYPE, COUNT_DTYPE]}
BLOCK_POINTER_DTYPE = {'names': ['block_id', 'filepos', 'size'],
                       'formats': ['<i', '<q', '<i']}

# Data frame columns
DATAFRAME_COLUMNS = ('chromosome', 'position.1', 'position.2', 'interaction')

# Cooler output
COOL_COUNT_DTYPE = np.float64
