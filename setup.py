from setuptools import setup, find_packages

setup(
    name="practice-core",
    version="1.0.0",
    packages=find_packages(include=["practice_core", "practice_core.*"]),
    install_requires=[
        "pydantic>=2.0.0",
        "sqlalchemy>=2.0.0",
        "pyyaml>=6.0",
        "numpy>=1.24.0",
        "pandas>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    python_requires=">=3.8",
)
