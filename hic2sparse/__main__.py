from . import (
    hic2sparse_convert,
    hic2sparse_dump,
    hic2sparse_info,
    hic2sparse_force_exit,
    HicFormatError,
    __version__
)
import argparse


def main(argv=None):
    """
    Execute the program from the command line
    """
    # the primary parser is used for hic2sparse -v or -h
    primary_parser = argparse.ArgumentParser(prog='hic2sparse', add_help=False)
    primary_parser.add_argument('-v', '--version', action='version',
                                version='%(prog)s ' + __version__)
    # the secondary parser is used for the specific run mode
    secondary_parser = argparse.ArgumentParser(prog='hic2sparse', parents=[primary_parser])
    # the subparsers collect the args used to run the hic2sparse mode
    subparsers = secondary_parser.add_subparsers(
        title='program modes',
        description='choose one of the following modes to run hic2sparse:',
        dest='mode',
        metavar='mode: {dump, convert, info}'
    )
    subparsers.required = True

    # add a subparser for the 'dump' command
    dump_help = 'write the contacts of a hic file at one resolution as tab-separated text'
    dump_subparser = subparsers.add_parser('dump', help=dump_help, description=dump_help)
    dump_subparser.add_argument("infile", help="hic input file path")
    dump_subparser.add_argument("outfile", nargs='?', default='-',
                                help="text output file path. Defaults to stdout")

    # add a subparser for the 'convert' command
    convert_help = 'convert one resolution of a hic file to a cooler file'
    convert_subparser = subparsers.add_parser('convert', help=convert_help, description=convert_help)
    convert_subparser.add_argument("infile", help="hic input file path")
    convert_subparser.add_argument("outfile", help="cooler output file path")

    for sp in [dump_subparser, convert_subparser]:
        sp.add_argument(
            "-r", "--resolution",
            help="integer bp resolution to read. Must be one of the "
                 "resolutions stored in the hic file",
            type=int,
            required=True
        )

    # add a subparser for the 'info' command
    info_help = 'print the header information of a hic file'
    info_subparser = subparsers.add_parser('info', help=info_help, description=info_help)
    info_subparser.add_argument("infile", help="hic input file path")

    # arguments shared by all subparsers
    for sp in [dump_subparser, convert_subparser, info_subparser]:
        sp.add_argument(
            "-s", "--silent", help="if used, silence standard program output",
            action="store_true"
        )
        sp.add_argument(
            "-w", "--warnings",
            help="if used, print out non-critical WARNING messages, which are "
                 "hidden by default. Silent mode takes precedence over this",
            action="store_true"
        )

    # two step argument parsing
    # first check for top level -v or -h (i.e. `hic2sparse -v`)
    (primary_namespace, remaining) = primary_parser.parse_known_args(argv)
    # lastly, get the mode and specific args
    args = secondary_parser.parse_args(args=remaining, namespace=primary_namespace)
    show_warnings = args.warnings and not args.silent
    try:
        if args.mode == 'dump':
            hic2sparse_dump(args.infile, args.outfile, args.resolution, args.silent)
        elif args.mode == 'convert':
            hic2sparse_convert(args.infile, args.outfile, args.resolution, show_warnings, args.silent)
        elif args.mode == 'info':
            hic2sparse_info(args.infile, args.silent)
    except (HicFormatError, OSError) as exc:
        hic2sparse_force_exit('!!! ERROR. %s' % exc)


if __name__ == '__main__':
    main()
