"""Provision prebuilt C and C++ library packages from a Conan package index."""

__version__ = "0.1.0"
