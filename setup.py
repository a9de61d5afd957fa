from setuptools import find_packages, setup

setup(
    name="ctv",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "ecdsa>=0.16",
    ],
    extras_require={
        "dev": [],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["ctv = ctv.__main__:main"],
    },
)
