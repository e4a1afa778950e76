from setuptools import setup, find_namespace_packages

setup(
    name="dfiles",
    version="0.1.0",
    packages=find_namespace_packages(where="src", include=["dfiles", "dfiles.*"]),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "jinja2>=3.0",
        "pytz>=2023.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "black>=23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dfiles=dfiles.CLI.main:main",
            "dfiles-firefox=dfiles.APPS.firefox:main",
            "dfiles-signal=dfiles.APPS.signal_desktop:main",
            "dfiles-discord=dfiles.APPS.discord:main",
        ],
    },
)
