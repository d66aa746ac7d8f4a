from setuptools import find_packages, setup

setup(
    name="flashsync",
    version="0.1.0",
    description="Disk image selection with MCU firmware update checks",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "aiofiles",
        "aiohttp",
        "packaging",
        "pick",
        "platformdirs",
        "PyYAML",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest<9.1",
            "pytest-asyncio",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "flashsync=flashsync.cli:main",
        ],
    },
)
