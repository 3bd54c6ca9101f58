# setup.py
import os
from setuptools import setup, find_packages

# --- Helper function to read files ---
def read(fname):
    """Reads the content of a file."""
    try:
        with open(os.path.join(os.path.dirname(__file__), fname), encoding='utf-8') as f:
            return f.read()
    except IOError:
        return ""

# --- Package Metadata ---
NAME = 'playlistwatch'
VERSION = '0.1.0'
DESCRIPTION = 'Browse and play live streams listed in a remote playlist file.'
LICENSE_TYPE = 'MIT License'
PYTHON_REQUIRES = '>=3.8'

# --- Define dependencies ---
# Read dependencies from requirements.txt, ignore comments/empty lines
INSTALL_REQUIRES = [
    req for req in read('requirements.txt').splitlines()
    if req and not req.strip().startswith('#')
]

# --- Setup Configuration ---
setup(
    name=NAME,
    version=VERSION,
    description=DESCRIPTION,
    long_description=read('README.md'),
    long_description_content_type='text/markdown',
    license=LICENSE_TYPE,
    python_requires=PYTHON_REQUIRES,

    packages=find_packages(where='src'),
    package_dir={'': 'src'},

    install_requires=INSTALL_REQUIRES,
    extras_require={
        'test': ['pytest>=7.4'],
    },

    entry_points={
        'console_scripts': [
            'playlistwatch = playlistwatch.main:main',
        ],
    },

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: End Users/Desktop',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Multimedia :: Video',
        'Topic :: Utilities',
    ],

    keywords='stream playlist m3u8 twitch live cli',
)
