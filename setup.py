from setuptools import find_namespace_packages, setup

setup(
    name='gpxtrace',
    version='0.1.0',
    description='GPS trace ingestion and rendering pipeline',
    python_requires='>=3.12',
    packages=find_namespace_packages(include=('gpxtrace', 'gpxtrace.*')),
    install_requires=[
        'aiosqlite',
        'annotated-types',
        'anyio>=4.1',
        'lxml',
        'numpy',
        'pillow',
        'pydantic>=2.7',
        'pydantic-settings',
        'python-magic',
        'sentry-sdk',
        'sizestr',
        'sqlalchemy[asyncio]>=2.0.22',
    ],
    extras_require={
        'postgres': [
            'asyncpg',
        ],
        'test': [
            'pytest',
            'pytest-asyncio>=0.24',
        ],
    },
)
