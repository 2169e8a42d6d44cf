#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(name='wmiclone',
    version='1.0.0',
    description='Clone the stock WMI event consumer classes into arbitrary namespaces, and hunt for such clones',
    classifiers=[
        'Environment :: Console',
        'License :: OSI Approved :: BSD License',
        'Programming Language :: Python :: 3',
        'Topic :: Security',
    ],
    keywords='wmi security windows persistence detection research',
    license='BSD',
    python_requires='>=3.8',
    packages=find_packages(include=[
        "wmiclone", "wmiclone.*"
    ]),
    package_data={
        "wmiclone": ["data/*.conf"],
    },
    install_requires=[
        'impacket',
        'termcolor',
        'rich',
        'pywin32; sys_platform == "win32"',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['wmiclone=wmiclone.main:main'],
    },
    include_package_data=True,
    zip_safe=False)
