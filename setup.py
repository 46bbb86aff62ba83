'''Setup script

Usage: pip install .
'''
from setuptools import setup, find_packages

setup(
    name='p2pvoicemail',
    version='0.1',
    packages=find_packages(exclude=['tests']),
    scripts=['manage.py', 'client.py'],
    install_requires=[
        'Django', 'pycryptodome', 'requests', 'bsv-sdk'
    ],
    extras_require={
        'test': ['pytest']
    }
)
