"""
Installation setup for tcgseed
"""
import configparser
import pathlib

import setuptools

# Establish project directory
project_root: pathlib.Path = pathlib.Path(__file__).resolve().parent

# Read config details to determine version-ing
config_file = project_root.joinpath("tcgseed/resources/tcgseed.properties")
config = configparser.ConfigParser()
if config_file.is_file():
    config.read(str(config_file))


def read_requirements(file_name: str) -> list:
    """Requirement lines of a requirements file, if able"""
    requirements_file = project_root.joinpath(file_name)
    if not requirements_file.is_file():
        return []
    return [
        line.strip()
        for line in requirements_file.open(encoding="utf-8").readlines()
        if line.strip() and not line.startswith("#")
    ]


setuptools.setup(
    name="tcgseed",
    version=config.get("TCGSEED", "version", fallback="1.0.0+fallback"),
    description="Trading card bulk data splitter and resumable catalog seeder",
    long_description=project_root.joinpath("README.md").open(encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: Unix",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python",
        "Topic :: Database",
    ],
    keywords=[
        "Big Data",
        "Card Games",
        "Collectible",
        "Database",
        "JSON",
        "MTG",
        "Scryfall",
        "Trading Cards",
        "Magic: The Gathering",
    ],
    python_requires=">=3.10",
    include_package_data=True,
    package_data={"tcgseed": ["resources/*.properties"]},
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    install_requires=read_requirements("requirements.txt"),
    extras_require={"test": read_requirements("requirements_test.txt")},
    entry_points={"console_scripts": ["tcgseed=tcgseed.__main__:main"]},
)
