#!/usr/bin/env python
# The .hic reading is based off of the straw project by Neva C. Durand and
# Yue Wu (https://github.com/theaidenlab/straw). The cooler file writing uses
# the cooler project: https://github.com/open2c/cooler.

import io
from setuptools import setup
from os import path

this_directory = path.abspath(path.dirname(__file__))
with io.open(path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

with io.open(path.join(this_directory, 'requirements.txt')) as f:
    requires = f.read().splitlines()
requires = [req.strip() for req in requires if req.strip()]

this_version = io.open(path.join(this_directory, "hic2sparse/_version.py")).readlines()[-1].split()[-1].strip("\"'")

setup(
    name = "hic2sparse",
    version = this_version,
    packages = ['hic2sparse'],
    description = """Reader for hic files (from juicer) that decodes the intra-chromosomal contact matrices at one resolution into sparse records, which can be dumped as text or written to a single-resolution cool file (for cooler).""",
    long_description=long_description,
    long_description_content_type='text/markdown',
    license = "MIT",
    keywords = ["bioinformatics", "genomics", "hi-c", "juicer", "cooler", "contact-matrix", "file-format"],
    python_requires = ">=3.7",
    install_requires = requires,
    extras_require = {
        'test': ['pytest'],
    },
    test_suite = "test",
    entry_points = {
        'console_scripts': [
             'hic2sparse = hic2sparse.__main__:main',
        ]
    },
    classifiers = [
        "Programming Language :: Python :: 3",
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Scientific/Engineering :: Bio-Informatics"
    ]
)
