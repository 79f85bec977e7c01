"""npm-solution-scout: discover, evaluate and install npm packages."""

__version__ = "0.1.0"
