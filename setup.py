"""
Setup script for package installation
"""
from setuptools import setup, find_packages

setup(
    name="thamel_loyalty",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10,<3.14",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "sqlalchemy>=2.0",
        "pydantic>=2.5",
        "email-validator>=2.0",
        "python-jose[cryptography]>=3.3",
        "bcrypt>=4.0",
        "python-dotenv>=1.0",
        "httpx>=0.26",
        "apscheduler>=3.10,<4",
        "alembic>=1.13",
        "psycopg2-binary>=2.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.26",
        ],
    },
)
