from setuptools import setup, find_packages

setup(
    name="claus",  # Package name
    version="0.1.0",  # Version number
    description="I/O-free request building and response decoding for the Anthropic messages API.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests>=2.25.0",
        "python-dotenv",
        "pydantic>=2",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
)
