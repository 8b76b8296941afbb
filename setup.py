from setuptools import setup

setup(
    name='asnranges',
    version='0.1.0',
    description='Minimal CIDR blocks originated by ASNs, from BGP RIB dumps',
    python_requires='>=3.7',
    py_modules=[
        'asnranges',
        'attribution',
        'cache',
        'collector',
        'include_exclude',
        'retrieve_ribs',
        'upstream',
    ],
    packages=['announcements', 'bgp', 'ranges', 'utils'],
    install_requires=[
        'py-radix',
        'pandas',
        'requests',
        'python-dateutil',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'asnranges=asnranges:main',
            'retrieve-ribs=retrieve_ribs:main',
        ],
    },
)
