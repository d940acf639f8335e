from importlib import import_module
from setuptools import setup

with open('README.rst') as f:
    readme = f.read()

setup(
    name='bombo',
    version=import_module('bombo').__version__,
    description='Small stack-based language with a single-pass bytecode compiler',
    long_description=readme,
    long_description_content_type='text/x-rst',
    packages=['bombo'],
    include_package_data=True,
    install_requires=[
        'termcolor',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development',
        'Topic :: Software Development :: Interpreters',
        'Topic :: Software Development :: Compilers',
    ],
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'bombo = bombo.interpreter:cli_main',
        ],
    },
)
