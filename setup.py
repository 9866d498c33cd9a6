from setuptools import setup, find_packages

setup(
    name="council-reports",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1.0",
        "pyyaml>=6.0",
        "python-dateutil>=2.8.0",
        "reportlab>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "council-reports=council_reports.cli:cli",
        ],
    },
)
