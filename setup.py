from setuptools import setup, find_packages

setup(
    name="beacon-statistics-exporter",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.8.5",
        "clickhouse-connect>=0.6.8",
        "pydantic>=2.3.0",
        "python-dotenv>=1.0.0",
        "tenacity>=8.2.3",
        "pyyaml>=6.0.1",
        "structlog>=23.1.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "beacon-statistics=src.main:entrypoint",
        ],
    },
    description="Keeps day-indexed validator statistics and chart series caught up with a beacon chain index",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
)
