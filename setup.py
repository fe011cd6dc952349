# Copyright (C) 2022 Leiden University Medical Center
# This file is part of suffixtrie
#
# suffixtrie is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# suffixtrie is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with suffixtrie.  If not, see <https://www.gnu.org/licenses/

from pathlib import Path

from setuptools import find_packages, setup

LONG_DESCRIPTION = Path("README.rst").read_text()

setup(
    name="suffixtrie",
    version="0.1.0-dev",
    description="Compressed suffix trie for locating DNA sequences",
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/x-rst",
    license="AGPL-3.0-or-later",
    keywords="DNA suffix trie FASTA",
    zip_safe=False,
    packages=find_packages('src'),
    package_dir={'': 'src'},
    package_data={'suffixtrie': ['py.typed']},
    classifiers=[
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.8",
    install_requires=["dnaio >=0.10.0", "xopen >=1.0.0"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": [
        "suffixtrie = suffixtrie:main"]}
)
