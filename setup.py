"""
setup.py for recex.
"""

from setuptools import setup, find_packages

setup(
    name="recex",
    version="0.3.0",  # Must match recex/__init__.py
    description="Receipt text parser and arithmetic validator for Québec receipts",
    packages=find_packages(include=['recex', 'recex.*']),
    package_data={
        'recex.config': ['default_config.yaml']
    },
    python_requires='>=3.9',
    install_requires=[
        'pydantic>=2.0',
        'pyyaml',
        'click'
    ],
    extras_require={
        'test': [
            'pytest'
        ]
    },
    entry_points={
        'console_scripts': [
            'recex=recex.cli:cli'
        ]
    }
)
