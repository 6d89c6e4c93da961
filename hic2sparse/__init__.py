from ._version import __version__
from .hic2sparse_errors import (
    HicFormatError,
    InvalidFormatError,
    UnsupportedVersionError,
    TruncatedReadError,
    DecompressionError,
    ResolutionNotFoundError
)
from .hic2sparse_reader import (
    CountWidth,
    FileInfo,
    HicCursor,
    decompress,
    read_block,
    read_footer,
    read_header,
    read_matrix
)
from .hic2sparse_utils import (
    HicContacts,
    hic2sparse_parse,
    hic2sparse_convert,
    hic2sparse_dump,
    hic2sparse_info,
    contacts_to_dataframe,
    read_file_info,
    print_stderr as hic2sparse_print_stderr,
    force_exit as hic2sparse_force_exit
)
