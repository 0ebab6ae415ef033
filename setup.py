from setuptools import setup

# Read version from portsentry/VERSION
with open('portsentry/VERSION') as f:
    VERSION = f.read().strip()

setup(
    name='portsentry',
    version=VERSION,
    description='Find the processes holding TCP listening ports and stop them (using lsof)',
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    license='MIT',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: POSIX',
        'Programming Language :: Python :: 3',
        'Topic :: System :: Networking :: Monitoring',
    ],
    python_requires='>=3.7',
    packages=['portsentry'],
    package_data={'portsentry': ['VERSION']},
    install_requires=[
        'psutil',
        'pyyaml',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'portsentry=portsentry:cli_entry',
        ],
    },
)
