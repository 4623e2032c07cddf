from setuptools import setup, find_packages

setup(
    name="thesaurion",
    version="0.1.0",
    description="Thesaurion - SKOS thesaurus term expansion for text indexing",
    packages=find_packages(include=["Thesaurion", "Thesaurion.*"]),
    python_requires=">=3.10",
    install_requires=[
        # RDF parsing
        "rdflib>=6.0.0",

        # Network
        "requests>=2.28.0",

        # Configuration
        "python-dotenv>=0.19.0",

        # Processing
        "psutil>=5.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "black>=22.0.0",
            "flake8>=4.0.0",
            "mypy>=0.950",
        ],
    },
)
