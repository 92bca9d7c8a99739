"""rememberer: spaced-repetition scheduling and topic knowledge states."""

from rememberer.consts import VERSION

__version__ = VERSION
