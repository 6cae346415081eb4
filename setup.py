#!/usr/bin/env python
from setuptools import setup, find_packages
import os
import re

# Read the version from __init__.py
with open(os.path.join('hexaequo_ai', '__init__.py'), 'r') as f:
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", f.read(), re.M)
    if version_match:
        version = version_match.group(1)
    else:
        version = '0.1.0'  # Default if not found

# Read long description from README.md
with open('README.md', 'r', encoding='utf-8') as f:
    long_description = f.read()

# Core dependencies
install_requires = [
    'torch>=2.0.0',  # Policy/value network
    'numpy>=1.22.0',  # Priors, visit counts and board planes
    'matplotlib>=3.5.0',  # Training plots
    'tensorboard>=2.10.0',  # Training metrics visualization
    'rich>=12.0.0',  # Terminal board and logging
    'tqdm>=4.64.0',  # Progress bars
]

# Development dependencies
dev_requires = [
    'pytest>=7.0.0',  # Test runner
    'pytest-cov>=4.0.0',  # Test coverage
    'mypy>=1.0.0',  # Static type checking
    'black>=23.0.0',  # Code formatting
    'isort>=5.10.0',  # Import sorting
]

setup(
    name='hexaequo-ai',
    version=version,
    description='Rules engine and PUCT tree search for the hexagonal board game Hexaequo',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Hexaequo AI Team',
    packages=find_packages(include=['hexaequo_ai', 'hexaequo_ai.*']),
    install_requires=install_requires,
    extras_require={
        'dev': dev_requires,
        'test': ['pytest>=7.0.0'],
        'all': dev_requires,
    },
    entry_points={
        'console_scripts': [
            'hexaequo-play=hexaequo_ai.play:main',
            'hexaequo-train=hexaequo_ai.train:main',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Games/Entertainment :: Board Games',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
    ],
    python_requires='>=3.9',
    include_package_data=True,
    keywords='hexaequo, board game, ai, mcts, puct, monte carlo tree search, self-play',
)
