from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as f:
    requirements = f.read().splitlines()

setup(
    name="ouilookup",
    version="1.1.0",
    author="ouilookup Contributors",
    description="Resolve IEEE OUIs (MAC address prefixes) to registered organization names.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "dev": ["pytest>=7.0,<9", "httpx>=0.24"],
    },
    entry_points={
        "console_scripts": [
            "ouilookup=ouilookup.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: System :: Networking",
    ],
    python_requires=">=3.11",
)
