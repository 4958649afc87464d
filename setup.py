# setup.py
from setuptools import setup, find_packages

setup(
    name="font_spider",
    version="0.1.0",
    description="Анализатор использования веб-шрифтов FontSpider",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.13",
        "soupsieve>=2.5",
        "tinycss2>=1.3",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "click>=8.2",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "font-spider=font_spider.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
