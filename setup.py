# setup.py - 安装与命令行入口

from setuptools import setup, find_packages

setup(
    name="battleship-sync",
    version="0.1.0",
    description="Threaded TCP server and client for exchanging Battleship boards and match results",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
        "dev": [
            "black>=23.9.1",
            "flake8>=6.1.0",
            "isort>=5.12.0",
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pre-commit>=3.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "battleship-sync-server=battleship_sync.server.main:main",
            "battleship-sync-client=battleship_sync.client.main:main",
        ],
    },
)
