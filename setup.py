# setup.py
from setuptools import setup, find_packages

setup(
    name="page_mirror",
    version="0.1.0",
    description="Асинхронное зеркалирование веб-страниц через headless Chromium",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"page_mirror": ["report/templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "jinja2>=3.1",
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "page-mirror=page_mirror.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
