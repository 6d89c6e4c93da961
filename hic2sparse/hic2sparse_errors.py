"""
Errors raised while decoding a .hic file. Any of them aborts the current parse;
no partial output is returned.
"""


class HicFormatError(ValueError):
    """Base class for all hic2sparse decoding errors"""


class InvalidFormatError(HicFormatError):
    """The file does not start with the HIC magic string"""


class UnsupportedVersionError(HicFormatError):
    def __init__(self, version):
        self.version = version
        super().__init__('Version %s no longer supported; hic files must be '
                         'version 6 or later' % version)


class TruncatedReadError(HicFormatError):
    """Fewer bytes were available than the layout requires"""


class DecompressionError(HicFormatError):
    """A block could not be inflated"""


class ResolutionNotFoundError(HicFormatError):
    def __init__(self, resolution, available):
        self.resolution = resolution
        self.available = list(available)
        super().__init__(
            'Cannot find resolution %s.\nAvailable resolutions:\n%s' %
            (resolution, '\n'.join('\t%s' % res for res in self.available)))
