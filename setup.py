#================================================================================
# Setup.py - Traditional Python Package Setup
# ================================================================================
# Install with: pip install -e .
# Local embeddings (sentence-transformers): pip install -e ".[local]"
# Test tooling: pip install -e ".[dev]"
#

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="docs-expert-rag",
    version="1.0.0",
    author="Docs Expert Team",
    author_email="team@example.com",
    description="Retrieval-augmented documentation expert with SSE and Redis pub/sub delivery",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/your-org/docs-expert-rag",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.104.0",
        "uvicorn[standard]>=0.24.0",
        "python-multipart>=0.0.6",
        "pydantic>=2.4.0",
        "pydantic-settings>=2.0.0",
        "redis>=5.0.1",
        "qdrant-client>=1.10.0",
        "openai>=1.30.0",
        "google-genai>=0.3.0",
        "numpy>=1.24.0",
        "PyPDF2>=3.0.0",
        "python-docx>=0.8.11",
        "httpx>=0.25.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "local": [
            "sentence-transformers>=2.2.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "black>=23.11.0",
            "isort>=5.12.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "docs-expert=docs_expert.cli:main",
        ],
    },
)
