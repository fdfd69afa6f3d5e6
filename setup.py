#!/usr/bin/env -S python3 -B -u
"""
Setup script for reachtest package - Fleet Network Reachability Tester
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    """Read README.md for package long description."""
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "reachtest - TCP/DNS reachability testing between fleet hosts over ssh"

# Read requirements from requirements.txt
def read_requirements():
    """Read requirements from requirements.txt file."""
    requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(requirements_path):
        with open(requirements_path, 'r', encoding='utf-8') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

setup(
    name='reachtest',
    version='1.0.0',
    description='Fleet network reachability tester driven by a rules-file grammar',
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    author='Network Analysis Tool',
    author_email='',
    license='MIT',

    # Package structure - src/ is installed as the reachtest package
    packages=['reachtest'] + ['reachtest.' + pkg for pkg in find_packages(where='src')],
    package_dir={
        'reachtest': 'src',
    },

    python_requires='>=3.8',

    install_requires=read_requirements(),

    extras_require={
        'dev': [
            'pytest>=6.0.0',
            'pytest-cov>=2.0.0',
            'flake8>=3.8.0',
        ],
    },

    entry_points={
        'console_scripts': [
            'reachtest=reachtest.scripts.reachability_test:main',
        ],
    },

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Topic :: System :: Networking',
        'Topic :: System :: Networking :: Monitoring',
    ],

    keywords='reachability ssh netcat dig traceroute firewall testing',
)
