"""Setup configuration for busarrivals."""

from setuptools import setup, find_packages

with open("docs/README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="busarrivals",
    version="0.1.0",
    author="Charles Jaffe",
    description="Upcoming bus arrivals at a stop, merging timetable and realtime predictions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/busarrivals",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Utilities",
    ],
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.25.0",
        "urllib3>=1.26.0",
        "PyYAML>=5.4",
    ],
    extras_require={
        "dev": ["pytest>=6.0", "black", "flake8"],
    },
    entry_points={
        "console_scripts": [
            "busarrivals=busarrivals.cli:main",
        ],
    },
)
