#!/usr/bin/env python

from setuptools import find_packages, setup

from appwire._version import __version__

version = __version__


try:
    with open("README.md", encoding="utf-8") as fp:
        readme = fp.read()
except OSError:
    readme = "(Readme file not found.)"

# Cheroot is the preferred server for the stand-alone mode
# (`appwire.server.server_cli`). We do not add it as an installation
# requirement, because applications are usually deployed behind another
# WSGI server.
install_requires = ["Jinja2", "json5", "PyYAML"]
tests_require = ["pytest", "WebTest"]

setup(
    name="AppWire",
    version=version,
    author="AppWire contributors",
    description="Bootstrap layer for small WSGI web applications",
    long_description=readme,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
        "Topic :: Internet :: WWW/HTTP :: WSGI",
        "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
        "Topic :: Software Development :: Libraries :: Application Frameworks",
    ],
    keywords="web wsgi application framework router middleware",
    license="MIT",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests"]),
    package_data={
        "appwire": ["templates/*.html"],
    },
    install_requires=install_requires,
    py_modules=[],
    zip_safe=False,
    extras_require={
        "server": ["cheroot"],
        "test": tests_require,
    },
    entry_points={"console_scripts": ["appwire = appwire.server.server_cli:run"]},
)
