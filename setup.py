from setuptools import setup, find_packages

setup(
    name="remote_coder",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "requests",
        "pyyaml",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "remotecoder=remote_coder.cli:main",
        ],
    },
    author="Uday Kanth",
    description="A coding assistant that reads and edits GitHub repositories through a model.",
)
