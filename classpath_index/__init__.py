"""Classpath Index — class/package indices over directories and JAR archives."""

__version__ = "1.0.0"
