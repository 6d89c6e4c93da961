"""
Writes small synthetic .hic files for the tests.

Files are laid out as header | matrix regions | footer | block data, so that
truncating the file only ever cuts into block bodies.
"""
import struct
import zlib


def cstr(value):
    return value.encode('utf-8') + b'\0'


def plain_block(records):
    """
    Pre-v7 block payload from (binX, binY, count) triples
    """
    out = struct.pack('<i', len(records))
    for x, y, c in records:
        out += struct.pack('<iif', x, y, c)
    return out


def rows_block(rows, x_offset=0, y_offset=0, use_short=0):
    """
    v7+ list-of-rows payload. rows is a list of (y, [(x, count), ...])
    """
    n_records = sum(len(cols) for _, cols in rows)
    out = struct.pack('<iiibb', n_records, x_offset, y_offset, use_short, 1)
    out += struct.pack('<h', len(rows))
    for y, cols in rows:
        out += struct.pack('<hh', y, len(cols))
        for x, c in cols:
            out += struct.pack('<h', x)
            out += struct.pack('<h', c) if use_short == 0 else struct.pack('<f', c)
    return out


def dense_block(values, w, x_offset=0, y_offset=0, use_short=0):
    """
    v7+ dense payload; values are row-major with row width w
    """
    out = struct.pack('<iiibb', len(values), x_offset, y_offset, use_short, 2)
    out += struct.pack('<ih', len(values), w)
    fmt = '<h' if use_short == 0 else '<f'
    for c in values:
        out += struct.pack(fmt, c)
    return out


def typed_block(type_):
    return struct.pack('<iiibb', 0, 0, 0, 0, type_)


def pack_header(version, master, genome, attributes, chromosomes, resolutions,
                magic=b'HIC'):
    out = magic + b'\0'
    out += struct.pack('<i', version)
    out += struct.pack('<q', master)
    out += cstr(genome)
    out += struct.pack('<i', len(attributes))
    for key, value in attributes:
        out += cstr(key) + cstr(value)
    out += struct.pack('<i', len(chromosomes))
    for name, length in chromosomes:
        out += cstr(name) + struct.pack('<i', length)
    out += struct.pack('<i', len(resolutions))
    for res in resolutions:
        out += struct.pack('<i', res)
    return out


def pack_matrix(matrix, resolutions, pointers):
    out = struct.pack('<ii', matrix['chr1'], matrix['chr2'])
    out += struct.pack('<i', len(matrix['directories']))
    for res_idx, blocks in enumerate(matrix['directories']):
        binsize = resolutions[res_idx] if res_idx < len(resolutions) else 0
        out += cstr('BP')
        out += struct.pack('<i', res_idx)
        out += struct.pack('<4f', 10.0, 2.0, 1.0, 5.0)
        out += struct.pack('<iiii', binsize, 100, 10, len(blocks))
        for block_id, (pos, size) in enumerate(pointers[res_idx]):
            out += struct.pack('<iqi', block_id, pos, size)
    return out


def pack_footer(entries):
    body = struct.pack('<i', len(entries))
    for key, pos, size in entries:
        body += cstr(key) + struct.pack('<qi', pos, size)
    # no expected value or normalization vectors
    body += struct.pack('<iii', 0, 0, 0)
    return struct.pack('<i', len(body)) + body


def write_hic(path, chromosomes, resolutions, matrices, version=8,
              genome='hg19', attributes=(('software', 'test'),), magic=b'HIC',
              extra_entries=(), reverse_entries=False, truncate=0):
    """
    Write a .hic file to path and return the master index offset.

    chromosomes: list of (name, length)
    matrices: list of {'chr1': int, 'chr2': int, 'directories': [[payload, ...], ...]}
        with one directory per resolution index. A payload of None is written
        as a zero-size block.
    extra_entries: additional (key, pos, size) footer entries
    truncate: number of bytes to cut from the end of the file
    """
    compressed = [[[zlib.compress(p) if p is not None else None for p in blocks]
                   for blocks in matrix['directories']] for matrix in matrices]
    header_len = len(pack_header(version, 0, genome, attributes, chromosomes,
                                 resolutions, magic))
    dummy = [[[(0, 0)] * len(blocks) for blocks in matrix['directories']]
             for matrix in matrices]
    matrix_lens = [len(pack_matrix(m, resolutions, d)) for m, d in zip(matrices, dummy)]
    matrix_positions = []
    pos = header_len
    for length in matrix_lens:
        matrix_positions.append(pos)
        pos += length
    master = pos
    entries = [('%s_%s' % (m['chr1'], m['chr2']), mpos, mlen)
               for m, mpos, mlen in zip(matrices, matrix_positions, matrix_lens)]
    entries.extend(extra_entries)
    if reverse_entries:
        entries.reverse()
    footer = pack_footer(entries)

    block_data = b''
    block_start = master + len(footer)
    pointers = []
    for matrix_blocks in compressed:
        matrix_pointers = []
        for blocks in matrix_blocks:
            dir_pointers = []
            for data in blocks:
                if data is None:
                    dir_pointers.append((block_start + len(block_data), 0))
                    continue
                dir_pointers.append((block_start + len(block_data), len(data)))
                block_data += data
            matrix_pointers.append(dir_pointers)
        pointers.append(matrix_pointers)

    out = pack_header(version, master, genome, attributes, chromosomes,
                      resolutions, magic)
    for matrix, matrix_pointers in zip(matrices, pointers):
        out += pack_matrix(matrix, resolutions, matrix_pointers)
    out += footer + block_data
    if truncate:
        out = out[:-truncate]
    with open(path, 'wb') as f:
        f.write(out)
    return master
